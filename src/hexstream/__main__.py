"""Entry point for `python -m hexstream` and the `hexstream` console script."""

from __future__ import annotations

from hexstream.cli import main

if __name__ == "__main__":
    main()
