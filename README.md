# quadpress

Compress images by splitting them into a quadtree of uniform blocks. A block
is divided into four while its pixels differ by more than a threshold under
the error measure you pick, and while it is still large enough to split.
Every leaf is then filled with its average colour and the result is saved
as a PNG. An animated GIF can also be written that shows the tree being
built one depth level at a time.

## Installation

```
pip install .
```

To run the tests as well:

```
pip install ".[test]"
pytest
```

## Command line

```
quadpress
```

The command prints a heading and then asks for whatever settings were not
given as options. The prompts are in Indonesian. The settings are:

| Option | Setting |
| --- | --- |
| `-i`, `--input` | path of the image to compress (any format Pillow can read) |
| `-m`, `--method` | error measure: `1` variance, `2` mean absolute deviation, `3` entropy, `4` max pixel difference |
| `-t`, `--threshold` | error threshold; a block whose error is at or below it is not split |
| `-b`, `--min-block` | minimum block size; a block is split only while a quarter of its area (rounded down) is at least this many pixels, and it is at least 2 pixels wide and 2 high |
| `-c`, `--target` | target compression ratio, or `0` to use the threshold as given |
| `-o`, `--output` | path of the compressed image, always written as PNG |
| `-g`, `--gif` | path of the animated GIF |

For example, with every setting given:

```
quadpress -i photo.jpg -m 1 -t 50 -b 16 -c 0 -o photo_small.png -g photo_steps.gif
```

When a target ratio above 0 is set, the threshold is found by bisection over
0 to 100 (at most 20 steps, stopping once the ratio is within 0.01 of the
target) and printed as `Best Threshold`.

The GIF shows one frame per tree depth, from the root down, followed by four
frames of the final result, each shown for one second.

When it finishes, the command prints the run time, the original and
compressed file sizes, the compression ratio (the share of the original file
size saved), the tree depth and the number of tree nodes. It exits with
status 1 if the method is not between 1 and 4, if a number cannot be read,
if input ends early, or if the image cannot be loaded.

## Library use

```python
from quadpress.compressor import ImageCompressor
from quadpress.metrics import ErrorMethod

compressor = ImageCompressor(
    "photo.jpg", "photo_small.png",
    ErrorMethod.VARIANCE, 50.0, 16, 0.0,
)
compressor.process()
compressor.generate_gif("photo_steps.gif", 1000)
print(compressor.compression_ratio())
print(compressor.stats_report(0.0))
```

`process()` loads the input (raising `OSError` if it cannot), searches for a
threshold if a target ratio is set, and writes the compressed PNG. After it,
the instance holds `threshold`, `original_size`, `compressed_size`,
`tree_depth`, `node_count` and the tree itself as `root`.
`run_compression(threshold)` rebuilds the tree for another threshold, writes
the PNG again and returns the ratio achieved. `generate_gif(path, duration)`
takes the time per frame in milliseconds.

The parts can also be used on their own:

- `quadpress.metrics` measures block error: `compute_variance`,
  `compute_mad`, `compute_entropy`, `compute_max_diff`, and
  `compute_error(pixels, method)`, which picks one by `ErrorMethod` number
  and returns `0.0` for an unknown one. All take a non-empty sequence of
  `Pixel` values and raise `ValueError` for an empty one.
- `quadpress.quadtree.QuadtreeNode` extracts a block's pixels and average
  colour from a packed RGB byte buffer, splits into four children, and
  renders the leaves (`render`) or the tree cut off at a given depth
  (`render_at_depth`) into an output buffer.
- `quadpress.imageio` has `load_image`, which reads any image Pillow can
  open into a `RasterImage` of 24-bit RGB, and `save_image`, which writes
  one as PNG.
- `quadpress.gif_writer.GifWriter` is a small animated GIF encoder that
  works as a context manager. `write_frame` takes RGBA frames; each gets its
  own median-split palette, Floyd–Steinberg dithering is available with
  `dither=True`, and pixels unchanged since the previous frame are written
  as transparent. `write_palette` and `write_lzw_image` write the lower-level
  parts of a frame.
- `quadpress.gif_palette` builds palettes (`make_palette`, `GifPalette`) and
  quantises frames (`threshold_image`, `dither_image`).

## Limitations

The compressed image is always written as PNG, whatever suffix the output
path has. The quadtree itself is not saved; only the rendered image and the
GIF are.