"""Entry point for `python -m focus_tracker`."""

import sys


def main():
    from focus_tracker.app import run
    sys.exit(run())


if __name__ == "__main__":
    main()
