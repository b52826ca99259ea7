"""Console-script entry point; reports a missing 'cli' extra instead of a traceback."""

import sys


def main():
    try:
        import click  # noqa: F401
    except ImportError:
        print(
            "Error: the drivesync command needs click.\n"
            "Install it with:  pip install drivesync[cli]",
            file=sys.stderr,
        )
        raise SystemExit(1)
    from .cli import main as cli_main
    cli_main(prog_name="drivesync")
