# File: seedorder/__main__.py
"""
SeedOrder - Module entry point.

    python -m seedorder --project project.yaml --output ./sql
"""

from __future__ import annotations


def main() -> None:
    """Delegate to the CLI main function."""
    from seedorder.cli import cli_main

    cli_main()


if __name__ == "__main__":
    main()
