"""Main entry point for the ribbon package."""

from ribbon.cli import app


def main():
    """Run the ribbon command-line interface."""
    app()


if __name__ == "__main__":
    main()
