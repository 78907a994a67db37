"""Animated GIF output: LZW encoding of palettised frames with delta frames.

Each frame gets its own local colour table. Pixels that did not change since
the previous frame are written as the transparent index, so viewers keep the
previous frame's colour there.
"""

from __future__ import annotations

import struct
from collections.abc import Sequence
from typing import BinaryIO

from quadpress.gif_palette import (
    TRANSPARENT_INDEX,
    GifPalette,
    dither_image,
    make_palette,
    threshold_image,
)

_MAX_DIMENSION = 0xFFFF
_LAST_CODE = 4095
_CHUNK_LIMIT = 255


class _CodeStream:
    """Packs variable-length codes LSB first into length-prefixed sub-blocks."""

    def __init__(self, stream: BinaryIO) -> None:
        self._stream = stream
        self._chunk = bytearray()
        self._bits = 0
        self._bit_count = 0

    def _flush_chunk(self) -> None:
        self._stream.write(bytes((len(self._chunk),)))
        self._stream.write(bytes(self._chunk))
        self._chunk.clear()

    def write(self, code: int, length: int) -> None:
        self._bits |= (code & ((1 << length) - 1)) << self._bit_count
        self._bit_count += length
        while self._bit_count >= 8:
            self._chunk.append(self._bits & 0xFF)
            self._bits >>= 8
            self._bit_count -= 8
            if len(self._chunk) == _CHUNK_LIMIT:
                self._flush_chunk()

    def finish(self) -> None:
        if self._bit_count:
            self._chunk.append(self._bits & 0xFF)
            self._bits = 0
            self._bit_count = 0
        if self._chunk:
            self._flush_chunk()


def write_palette(palette: GifPalette, stream: BinaryIO) -> None:
    """Write ``2**bit_depth`` RGB entries; entry 0 is always black."""
    table = bytearray((0, 0, 0))
    for index in range(1, 1 << palette.bit_depth):
        table += bytes((palette.r[index], palette.g[index], palette.b[index]))
    stream.write(bytes(table))


def write_lzw_image(
    stream: BinaryIO,
    image: Sequence[int],
    left: int,
    top: int,
    width: int,
    height: int,
    delay: int,
    palette: GifPalette,
) -> None:
    """Write one frame: control extension, descriptor, palette and LZW data.

    ``image`` is an RGBA buffer whose alpha bytes hold palette indices.
    """
    expected = width * height * 4
    if len(image) != expected:
        raise ValueError(
            f"image holds {len(image)} bytes, expected {expected} for a "
            f"{width}x{height} frame"
        )

    # Graphics control extension: keep previous frame, transparency on.
    stream.write(
        bytes((0x21, 0xF9, 0x04, 0x05))
        + struct.pack("<H", delay & 0xFFFF)
        + bytes((TRANSPARENT_INDEX, 0))
    )
    # Image descriptor with a local colour table of 2**bit_depth entries.
    stream.write(
        b"\x2c"
        + struct.pack(
            "<HHHH", left & 0xFFFF, top & 0xFFFF, width & 0xFFFF, height & 0xFFFF
        )
        + bytes((0x80 + palette.bit_depth - 1,))
    )
    write_palette(palette, stream)

    min_code_size = palette.bit_depth
    clear_code = 1 << min_code_size
    stream.write(bytes((min_code_size,)))

    codes = _CodeStream(stream)
    dictionary: dict[tuple[int, int], int] = {}
    current = -1
    code_size = min_code_size + 1
    max_code = clear_code + 1

    codes.write(clear_code, code_size)

    for value in image[3::4]:
        if current < 0:
            current = value
            continue
        known = dictionary.get((current, value))
        if known is not None:
            current = known
            continue

        codes.write(current, code_size)
        max_code += 1
        dictionary[(current, value)] = max_code
        if max_code >= 1 << code_size:
            code_size += 1
        if max_code == _LAST_CODE:
            codes.write(clear_code, code_size)
            dictionary.clear()
            code_size = min_code_size + 1
            max_code = clear_code + 1
        current = value

    codes.write(current, code_size)
    codes.write(clear_code, code_size)
    codes.write(clear_code + 1, min_code_size + 1)
    codes.finish()

    stream.write(b"\x00")


class GifWriter:
    """Writes an animated GIF to a file, one RGBA frame at a time."""

    def __init__(self, path, width: int, height: int, delay: int = 0) -> None:
        for name, value in (("width", width), ("height", height)):
            if not 0 < value <= _MAX_DIMENSION:
                raise ValueError(f"{name} must be between 1 and {_MAX_DIMENSION}, got {value}")
        self.width = width
        self.height = height
        self._previous: bytearray | None = None
        self._stream: BinaryIO | None = open(path, "wb")
        try:
            self._write_header(delay)
        except BaseException:
            self._stream.close()
            self._stream = None
            raise

    def _write_header(self, delay: int) -> None:
        assert self._stream is not None
        header = bytearray(b"GIF89a")
        header += struct.pack("<HH", self.width, self.height)
        # Global colour table of two black entries, background 0, square pixels.
        header += bytes((0xF0, 0, 0)) + bytes(6)
        if delay != 0:
            header += bytes((0x21, 0xFF, 11)) + b"NETSCAPE2.0"
            header += bytes((3, 1, 0, 0, 0))  # loop forever
        self._stream.write(bytes(header))

    @property
    def closed(self) -> bool:
        return self._stream is None

    def write_frame(
        self,
        image: Sequence[int],
        width: int,
        height: int,
        delay: int,
        bit_depth: int = 8,
        dither: bool = False,
    ) -> None:
        """Quantise an RGBA frame and append it to the animation."""
        if self._stream is None:
            raise ValueError("cannot write a frame to a closed GIF")
        if (width, height) != (self.width, self.height):
            raise ValueError(
                f"frame is {width}x{height}, the GIF is {self.width}x{self.height}"
            )

        previous = self._previous
        palette = make_palette(
            None if dither else previous, image, width, height, bit_depth, dither
        )
        quantise = dither_image if dither else threshold_image
        self._previous = quantise(previous, image, width, height, palette)
        write_lzw_image(self._stream, self._previous, 0, 0, width, height, delay, palette)

    def close(self) -> None:
        """Write the trailer and close the file; later calls do nothing."""
        if self._stream is None:
            return
        try:
            self._stream.write(b"\x3b")
        finally:
            self._stream.close()
            self._stream = None
            self._previous = None

    def __enter__(self) -> GifWriter:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()