"""Command line front end: asks for the settings and compresses one image."""

from __future__ import annotations

import argparse
import sys
import time

from quadpress.compressor import ImageCompressor

_GIF_FRAME_DURATION = 1000
_METHOD_MENU = (
    "Pilih metode perhitungan error:\n"
    "[1] Variance\n[2] Mean Absolute Deviation (MAD)\n[3] Entropy\n[4] Max Pixel Difference"
)


class _InputError(Exception):
    pass


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="quadpress",
        description="Compress an image with a quadtree; missing settings are asked for.",
    )
    parser.add_argument("-i", "--input", help="path of the image to compress")
    parser.add_argument("-m", "--method", type=int, help="error method, 1 to 4")
    parser.add_argument("-t", "--threshold", type=float, help="error threshold")
    parser.add_argument("-b", "--min-block", type=int, help="minimum block size")
    parser.add_argument(
        "-c", "--target", type=float, help="target compression ratio, 0 to disable"
    )
    parser.add_argument("-o", "--output", help="path of the compressed PNG")
    parser.add_argument("-g", "--gif", help="path of the animated GIF")
    return parser


def _ask_text(value, prompt: str) -> str:
    if value is not None:
        return value
    try:
        return input(prompt)
    except EOFError as exc:
        raise _InputError("input ended unexpectedly") from exc


def _ask_number(value, prompt: str, convert):
    if value is not None:
        return value
    text = _ask_text(None, prompt).strip()
    try:
        return convert(text)
    except ValueError as exc:
        raise _InputError(f"not a valid number: {text!r}") from exc


def _ask_method(value) -> int:
    if value is not None:
        return value
    print(_METHOD_MENU)
    text = _ask_text(None, "Masukkan nomor metode: ").strip()
    try:
        return int(text)
    except ValueError:
        return 0


def main(argv=None) -> int:
    """Run the interactive compressor; returns the process exit status."""
    args = _build_parser().parse_args(argv)
    print("=== Kompresi GAMBAR MENGGUNAKAN QUADTREE ===")

    try:
        input_path = _ask_text(args.input, "Masukkan path absolut gambar: ")
        method = _ask_method(args.method)
        if not 1 <= method <= 4:
            print(
                "[ERROR] Metode tidak valid! Pilih angka antara 1 hingga 4.",
                file=sys.stderr,
            )
            return 1
        threshold = _ask_number(
            args.threshold, "Masukkan nilai threshold (berdasarkan metode): ", float
        )
        min_block_size = _ask_number(args.min_block, "Masukkan ukuran blok minimum: ", int)
        target = _ask_number(
            args.target, "Masukkan target rasio kompresi (0 untuk menonaktifkan): ", float
        )
        output_path = _ask_text(args.output, "Masukkan path absolut gambar hasil kompresi: ")

        start = time.perf_counter()
        compressor = ImageCompressor(
            input_path, output_path, method, threshold, min_block_size, target
        )
        try:
            compressor.process()
        except OSError as exc:
            print(f"[ERROR] Failed to load image: {exc}", file=sys.stderr)
            return 1
        if target > 0.0:
            print(f"Best Threshold: {compressor.threshold:g}")

        gif_path = _ask_text(args.gif, "Masukkan path absolut GIF: ")
        compressor.generate_gif(gif_path, _GIF_FRAME_DURATION)
        elapsed = time.perf_counter() - start
    except _InputError as exc:
        print(f"[ERROR] {exc}", file=sys.stderr)
        return 1

    print(compressor.stats_report(elapsed), end="")
    return 0


if __name__ == "__main__":
    sys.exit(main())