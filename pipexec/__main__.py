"""Entry point for running pipexec as a module: ``python -m pipexec``."""

from __future__ import annotations

from pipexec.cli import main

if __name__ == "__main__":
    main()
