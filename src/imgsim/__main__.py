"""Allow running the package with: `python -m imgsim`.

This delegates to :func:`imgsim.cli.main`.
"""

from .cli import main


if __name__ == "__main__":
    raise SystemExit(main())
