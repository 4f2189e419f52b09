"""Hashing utilities for imgsim.

imgsim represents an image as a perceptual hash: a short fixed-length bit
fingerprint where visually similar images differ in only a few bits. Five
algorithms are available:

- ``mean`` (``m``): average hash, each bit is pixel > mean
- ``gradient`` (``g``): difference hash over rows, the default
- ``vertgradient`` (``v``): difference hash over columns
- ``doublegradient`` (``d``): row and column gradients of a half-size grid
- ``blockhash`` (``b``): block sums compared against their band median

The first three come straight from ImageHash. The other two are computed here
with the same grayscale/resize/numpy steps ImageHash uses, and are returned as
``imagehash.ImageHash`` objects so every algorithm behaves the same downstream.

Canonical string form
---------------------
Bits are flattened row-major, packed MSB-first into bytes and encoded with
standard base64 (``+/`` alphabet, ``=`` padding).
"""

from __future__ import annotations

import base64
import binascii
import enum
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Optional

import imagehash
import numpy as np
from PIL import Image

from .errors import InvalidAlgorithm
from .io_utils import open_image


logger = logging.getLogger(__name__)

DEFAULT_HASH_SIZE = 8

# Blockhash compares each block against the median of its horizontal band.
BLOCKHASH_BANDS = 4


class HashAlgorithm(enum.Enum):
    """Supported perceptual hash algorithms, keyed by (token, alias)."""

    MEAN = ("mean", "m")
    GRADIENT = ("gradient", "g")
    VERT_GRADIENT = ("vertgradient", "v")
    DOUBLE_GRADIENT = ("doublegradient", "d")
    BLOCKHASH = ("blockhash", "b")

    def __init__(self, token: str, alias: str) -> None:
        self.token = token
        self.alias = alias


DEFAULT_ALGORITHM = HashAlgorithm.GRADIENT

_TOKENS: Dict[str, HashAlgorithm] = {
    tok: alg for alg in HashAlgorithm for tok in (alg.token, alg.alias)
}


def resolve_algorithm(token: Optional[str]) -> HashAlgorithm:
    """Map an optional algorithm name or alias to a :class:`HashAlgorithm`.

    Matching is exact and case-sensitive. ``None`` selects the default
    (gradient).

    Raises
    ------
    InvalidAlgorithm
        If *token* is given but names no algorithm.
    """

    if token is None:
        return DEFAULT_ALGORITHM
    try:
        return _TOKENS[token]
    except KeyError:
        raise InvalidAlgorithm(token) from None


def _grayscale(image: Image.Image, width: int, height: int) -> np.ndarray:
    small = image.convert("L").resize((width, height), Image.Resampling.LANCZOS)
    return np.asarray(small)


def double_gradient_hash(image: Image.Image, hash_size: int = DEFAULT_HASH_SIZE) -> imagehash.ImageHash:
    """Row gradients followed by column gradients of a ``(n/2+1)``-square grid.

    For the default size of 8 this gives 5x4 + 4x5 = 40 bits.
    """

    side = hash_size // 2 + 1
    px = _grayscale(image, side, side)
    rows = px[:, 1:] > px[:, :-1]
    cols = px[1:, :] > px[:-1, :]
    return imagehash.ImageHash(np.concatenate([rows.flatten(), cols.flatten()]))


def _block_weights(length: int, blocks: int) -> np.ndarray:
    """Overlap of each pixel [i, i+1) with each block, shape (blocks, length)."""

    edges = np.linspace(0.0, float(length), blocks + 1)
    idx = np.arange(length, dtype=np.float64)
    lo = np.maximum(idx[None, :], edges[:-1, None])
    hi = np.minimum(idx[None, :] + 1.0, edges[1:, None])
    return np.clip(hi - lo, 0.0, None)


def blockhash(image: Image.Image, hash_size: int = DEFAULT_HASH_SIZE) -> imagehash.ImageHash:
    """Blockhash over an ``n x n`` grid of area-weighted block sums.

    Pixels straddling a block boundary contribute to both blocks in
    proportion to their overlap, so any image size works without resizing.
    """

    px = np.asarray(image.convert("L"), dtype=np.float64)
    height, width = px.shape
    sums = _block_weights(height, hash_size) @ px @ _block_weights(width, hash_size).T

    flat = sums.flatten()
    bits = np.zeros(flat.shape, dtype=bool)
    start = 0
    for band in np.array_split(flat, BLOCKHASH_BANDS):
        stop = start + band.size
        bits[start:stop] = band > np.median(band)
        start = stop
    return imagehash.ImageHash(bits.reshape(hash_size, hash_size))


_HASH_FUNCTIONS: Dict[HashAlgorithm, Callable[[Image.Image, int], imagehash.ImageHash]] = {
    HashAlgorithm.MEAN: imagehash.average_hash,
    HashAlgorithm.GRADIENT: imagehash.dhash,
    HashAlgorithm.VERT_GRADIENT: imagehash.dhash_vertical,
    HashAlgorithm.DOUBLE_GRADIENT: double_gradient_hash,
    HashAlgorithm.BLOCKHASH: blockhash,
}


@dataclass(frozen=True)
class HashedImage:
    """A computed hash for a specific image file path."""

    path: Path
    algorithm: HashAlgorithm
    hash: imagehash.ImageHash


@dataclass(frozen=True)
class Hasher:
    """Hashes decoded images with one fixed algorithm and size."""

    algorithm: HashAlgorithm
    hash_size: int

    def hash_image(self, image: Image.Image) -> imagehash.ImageHash:
        return _HASH_FUNCTIONS[self.algorithm](image, self.hash_size)

    def hash_path(self, path: Path) -> HashedImage:
        """Decode *path* and hash it. Raises ImageDecodeError on bad input."""
        h = self.hash_image(open_image(path))
        logger.debug("%s hash of %s: %s", self.algorithm.token, path, h)
        return HashedImage(path=path, algorithm=self.algorithm, hash=h)


@dataclass(frozen=True)
class HasherConfig:
    """Hashing configuration; call :meth:`to_hasher` to use it."""

    algorithm: HashAlgorithm = DEFAULT_ALGORITHM
    hash_size: int = DEFAULT_HASH_SIZE

    def to_hasher(self) -> Hasher:
        if self.hash_size < 2:
            raise ValueError(f"hash_size must be at least 2, got {self.hash_size}")
        return Hasher(algorithm=self.algorithm, hash_size=self.hash_size)


def hash_image(path: Path, algorithm: HashAlgorithm = DEFAULT_ALGORITHM) -> imagehash.ImageHash:
    """Decode the image at *path* and compute its perceptual hash.

    Parameters
    ----------
    path:
        Path to an image file.
    algorithm:
        Which hash to compute (default: gradient).

    Returns
    -------
    imagehash.ImageHash
        The hash of the decoded image.

    Raises
    ------
    ImageDecodeError
        If the file can't be opened/decoded as an image.
    """

    return HasherConfig(algorithm=algorithm).to_hasher().hash_path(path).hash


def byte_length(h: imagehash.ImageHash) -> int:
    """Number of bytes needed to store the hash bits."""

    return (h.hash.size + 7) // 8


def hash_distance(a: imagehash.ImageHash, b: imagehash.ImageHash) -> int:
    """Compute the Hamming distance between two hashes of equal length.

    Raises
    ------
    ValueError
        If the hashes have a different number of bits.
    """

    if a.hash.size != b.hash.size:
        raise ValueError(f"cannot compare a {a.hash.size}-bit hash with a {b.hash.size}-bit hash")
    return int(np.count_nonzero(a.hash.flatten() != b.hash.flatten()))


def to_base64(h: imagehash.ImageHash) -> str:
    """Encode a hash in its canonical base64 form."""

    packed = np.packbits(h.hash.flatten().astype(bool))
    return base64.b64encode(packed.tobytes()).decode("ascii")


def from_base64(text: str) -> imagehash.ImageHash:
    """Decode a string produced by :func:`to_base64`.

    The result is a flat hash of ``8 * len(bytes)`` bits. Grid shape is not
    part of the encoding, but distances are unaffected by it.

    Raises
    ------
    ValueError
        If *text* is not valid base64.
    """

    try:
        raw = base64.b64decode(text, validate=True)
    except binascii.Error as exc:
        raise ValueError(f"invalid base64 hash {text!r}: {exc}") from exc
    bits = np.unpackbits(np.frombuffer(raw, dtype=np.uint8)).astype(bool)
    return imagehash.ImageHash(bits)
