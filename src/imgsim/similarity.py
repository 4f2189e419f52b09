"""Similarity logic for imgsim.

Given two images and an algorithm, both are hashed with the same hasher and
scored by the fraction of hash bits they share:

    similarity = (total_bits - distance) / total_bits

where ``total_bits`` is the hash byte length times 8. The division is done in
32-bit floats. 1.0 means identical hashes, 0.0 means every bit differs.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import imagehash
import numpy as np

from .hashing import DEFAULT_ALGORITHM, HashAlgorithm, HashedImage, HasherConfig, byte_length, hash_distance


@dataclass(frozen=True)
class CompareResult:
    """Result of comparing two hashed images."""

    first: HashedImage
    second: HashedImage
    distance: int
    total_bits: int
    similarity: np.float32


def similarity(a: imagehash.ImageHash, b: imagehash.ImageHash) -> np.float32:
    """Fraction of matching bits between two equal-length hashes, as a float32."""

    total_bits = byte_length(a) * 8
    return np.float32(total_bits - hash_distance(a, b)) / np.float32(total_bits)


def compare_images(
    first: Path,
    second: Path,
    algorithm: HashAlgorithm = DEFAULT_ALGORITHM,
) -> CompareResult:
    """Hash two images with the same algorithm and score them.

    The first image is decoded and hashed before the second; a decode
    failure in either raises :class:`~imgsim.errors.ImageDecodeError` for
    that path.

    Parameters
    ----------
    first, second:
        Paths to image files.
    algorithm:
        Hash algorithm used for both images.

    Returns
    -------
    CompareResult
        Both hashes, their distance and the similarity score.
    """

    hasher = HasherConfig(algorithm=algorithm).to_hasher()
    h1 = hasher.hash_path(first)
    h2 = hasher.hash_path(second)

    return CompareResult(
        first=h1,
        second=h2,
        distance=hash_distance(h1.hash, h2.hash),
        total_bits=byte_length(h1.hash) * 8,
        similarity=similarity(h1.hash, h2.hash),
    )


def format_number(value: float) -> str:
    """Shortest decimal that round-trips as a 32-bit float, no trailing ``.0``.

    >>> format_number(1.0), format_number(0.75), format_number(75.0)
    ('1', '0.75', '75')
    """

    return np.format_float_positional(np.float32(value), trim="-")


def format_similarity(value: float, percentage: bool = False) -> str:
    """Render a similarity score as a fraction or as ``<value*100>%``.

    The multiplication is done in 32-bit floats, so 0.575 prints as
    ``57.5%``.
    """

    if percentage:
        return f"{format_number(np.float32(value) * np.float32(100))}%"
    return format_number(value)
