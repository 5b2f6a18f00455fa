"""Allow running noderunner as ``python -m noderunner``."""

from noderunner.cli import cli_main

if __name__ == "__main__":
    cli_main()
