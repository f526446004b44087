"""CLI entry point for the batch-transcode package."""

import sys


def main():
    """Entry point for the batch-transcode command."""
    from batch_transcode.core.main import main as run
    sys.exit(run())


if __name__ == "__main__":
    main()
