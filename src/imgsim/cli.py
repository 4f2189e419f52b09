"""imgsim CLI.

This is the entry point used by:
- `python -m imgsim`
- the console script `imgsim` (installed via pyproject.toml)

Example
-------
imgsim hash photo.png
imgsim hash photo.png -a blockhash
imgsim compare original.jpg edited.jpg --percentage

Output
------
Exactly one line on stdout when the command succeeds. On any failure, one
``error: <message>`` line on stderr, nothing on stdout, and exit code 1.
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import NoReturn, Optional, Sequence, Union

from . import __version__
from .errors import ArgumentError, ImgsimError
from .hashing import hash_image, resolve_algorithm, to_base64
from .similarity import compare_images, format_similarity


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HashCommand:
    """`imgsim hash <path>`"""

    path: Path
    algorithm: Optional[str] = None


@dataclass(frozen=True)
class CompareCommand:
    """`imgsim compare <first> <second>`"""

    first: Path
    second: Path
    percentage: bool = False
    algorithm: Optional[str] = None


Command = Union[HashCommand, CompareCommand]


class _ArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that raises instead of exiting with status 2."""

    def error(self, message: str) -> NoReturn:
        raise ArgumentError(message)


def _add_common(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "-a",
        "--algorithm",
        default=None,
        help=(
            "Hash algorithm: mean (m), gradient (g), vertgradient (v), "
            "doublegradient (d) or blockhash (b). Default: gradient."
        ),
    )
    p.add_argument("-V", "--version", action="version", version=f"imgsim {__version__}")
    # SUPPRESS keeps a top-level -v from being reset by the subcommand default.
    p.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=argparse.SUPPRESS,
        help="Log decoding and hashing details to stderr.",
    )


def _build_parser() -> argparse.ArgumentParser:
    p = _ArgumentParser(
        prog="imgsim",
        description="Compute and compare perceptual hashes of images.",
    )
    p.add_argument("-V", "--version", action="version", version=f"imgsim {__version__}")
    p.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log decoding and hashing details to stderr.",
    )
    sub = p.add_subparsers(dest="command", metavar="COMMAND", required=True)

    hp = sub.add_parser("hash", help="Print the base64 perceptual hash of an image.")
    hp.add_argument("path", type=Path, help="Image file to hash.")
    _add_common(hp)

    cp = sub.add_parser("compare", help="Print how similar two images are (0 to 1).")
    cp.add_argument("first", type=Path, help="First image file.")
    cp.add_argument("second", type=Path, help="Second image file.")
    cp.add_argument(
        "-p",
        "--percentage",
        action="store_true",
        help="Print the similarity as a percentage, e.g. 75%%.",
    )
    _add_common(cp)
    return p


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments. Raises ArgumentError when malformed."""
    return _build_parser().parse_args(argv)


def _to_command(args: argparse.Namespace) -> Command:
    if args.command == "hash":
        return HashCommand(path=args.path, algorithm=args.algorithm)
    return CompareCommand(
        first=args.first,
        second=args.second,
        percentage=bool(args.percentage),
        algorithm=args.algorithm,
    )


def parse_command(argv: Optional[Sequence[str]] = None) -> Command:
    """Turn an argument vector into a :data:`Command`."""
    return _to_command(_parse_args(argv))


def run(command: Command) -> str:
    """Execute *command* and return the line to print.

    Nothing is printed here, so a failure never leaves partial output.
    """

    algorithm = resolve_algorithm(command.algorithm)

    if isinstance(command, HashCommand):
        return to_base64(hash_image(command.path, algorithm))

    res = compare_images(command.first, command.second, algorithm)
    logger.debug(
        "distance %d of %d bits between %s and %s",
        res.distance,
        res.total_bits,
        command.first,
        command.second,
    )
    return format_similarity(res.similarity, percentage=command.percentage)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run imgsim.

    Returns
    -------
    int
        Process exit code (0 success, 1 on any error).
    """
    try:
        args = _parse_args(argv)
        if args.verbose:
            logging.basicConfig(
                level=logging.DEBUG,
                format="%(levelname)s %(name)s: %(message)s",
                stream=sys.stderr,
            )
        line = run(_to_command(args))
    except ImgsimError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    print(line)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
