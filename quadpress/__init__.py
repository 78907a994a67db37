"""Quadtree image compression with block error metrics, PNG output and an animated GIF encoder."""

__version__ = "0.1.0"

__all__ = ["__version__"]