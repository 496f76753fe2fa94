"""Entry point for running Partyline as a module."""

from partyline.cli import app


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
