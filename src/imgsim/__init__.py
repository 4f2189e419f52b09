"""imgsim package.

This package provides a small command-line tool that computes perceptual
hashes of images and compares two images by hash distance.
"""

__all__ = ["cli", "errors", "hashing", "similarity", "io_utils"]
__version__ = "0.1.0"
