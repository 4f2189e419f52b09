"""I/O helpers for imgsim.

This module handles decoding image files into in-memory Pillow images. The
file handle never outlives :func:`open_image`.
"""

from __future__ import annotations

import logging
from pathlib import Path

from PIL import Image

from .errors import ImageDecodeError


logger = logging.getLogger(__name__)


def open_image(path: Path) -> Image.Image:
    """Decode the image at *path* into memory.

    Parameters
    ----------
    path:
        Path to an image file in any format Pillow can read.

    Returns
    -------
    PIL.Image.Image
        A fully loaded image, detached from the file it came from.

    Raises
    ------
    ImageDecodeError
        If the file is missing, unreadable, or not a recognized image.
    """

    try:
        with Image.open(path) as img:
            img.load()
            logger.debug("decoded %s (%s, %dx%d, %s)", path, img.format, img.width, img.height, img.mode)
            # Closing the source invalidates its pixel data, so hand back a copy.
            return img.copy()
    # Corrupt data surfaces as SyntaxError, ValueError or EOFError from some plugins.
    except (OSError, SyntaxError, ValueError, EOFError, Image.DecompressionBombError) as exc:
        raise ImageDecodeError(path, exc) from exc
