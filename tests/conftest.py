import random
import shutil
import struct
import zlib
from pathlib import Path

import pytest
from PIL import Image


@pytest.fixture
def gradient_png(tmp_path: Path) -> Path:
    """64x64 grayscale image getting brighter from left to right."""
    img = Image.new("L", (64, 64))
    img.putdata([x * 4 for _ in range(64) for x in range(64)])
    file_path = tmp_path / "gradient.png"
    img.save(file_path)
    return file_path


@pytest.fixture
def gradient_copy_png(gradient_png: Path, tmp_path: Path) -> Path:
    """Byte-identical copy of ``gradient_png`` under another name."""
    file_path = tmp_path / "gradient_copy.png"
    shutil.copyfile(gradient_png, file_path)
    return file_path


@pytest.fixture
def checker_png(tmp_path: Path) -> Path:
    """64x64 RGB checkerboard with 8px squares."""
    img = Image.new("RGB", (64, 64), color="white")
    for y in range(64):
        for x in range(64):
            if (x // 8 + y // 8) % 2:
                img.putpixel((x, y), (0, 0, 0))
    file_path = tmp_path / "checker.png"
    img.save(file_path)
    return file_path


@pytest.fixture
def split_png(tmp_path: Path) -> Path:
    """64x64 image, black on the left half and white on the right half."""
    img = Image.new("L", (64, 64), color=0)
    img.paste(255, (32, 0, 64, 64))
    file_path = tmp_path / "split.png"
    img.save(file_path)
    return file_path


@pytest.fixture
def not_an_image(tmp_path: Path) -> Path:
    file_path = tmp_path / "notes.png"
    file_path.write_text("This is not a PNG.")
    return file_path


@pytest.fixture
def missing_png(tmp_path: Path) -> Path:
    return tmp_path / "missing.png"


def _ramp_rows(descending_rows: int) -> Image.Image:
    """9x8 image whose rows brighten left to right, except the first few.

    At 9x8 the gradient hash needs no resize, so each row maps to exactly
    8 hash bits and each descending row clears all of them.
    """
    img = Image.new("L", (9, 8))
    rows = []
    for y in range(8):
        row = [20 + x * 25 for x in range(9)]
        rows.extend(reversed(row) if y < descending_rows else row)
    img.putdata(rows)
    return img


@pytest.fixture
def ramp_png(tmp_path: Path) -> Path:
    file_path = tmp_path / "ramp.png"
    _ramp_rows(0).save(file_path)
    return file_path


@pytest.fixture
def ramp_two_rows_flipped_png(tmp_path: Path) -> Path:
    """Differs from ``ramp_png`` in 16 of the 64 gradient bits."""
    file_path = tmp_path / "ramp_flipped.png"
    _ramp_rows(2).save(file_path)
    return file_path


def _png_chunk(cid: bytes, data: bytes) -> bytes:
    return struct.pack(">I", len(data)) + cid + data + struct.pack(">I", zlib.crc32(cid + data))


@pytest.fixture
def corrupt_png(tmp_path: Path) -> Path:
    """PNG with a valid header, half of its pixel data and then a garbage chunk."""
    rng = random.Random(0)
    pixels = bytes(rng.randrange(256) for _ in range(64 * 64))
    compressed = zlib.compress(b"".join(b"\x00" + pixels[y * 64:(y + 1) * 64] for y in range(64)))
    ihdr = struct.pack(">IIBBBBB", 64, 64, 8, 0, 0, 0, 0)
    data = (
        b"\x89PNG\r\n\x1a\n"
        + _png_chunk(b"IHDR", ihdr)
        + _png_chunk(b"IDAT", compressed[: len(compressed) // 2])
        + struct.pack(">I", 16)
        + b"\x01\x02\x03\x04"
        + b"\x00" * 20
    )
    file_path = tmp_path / "corrupt.png"
    file_path.write_bytes(data)
    return file_path
