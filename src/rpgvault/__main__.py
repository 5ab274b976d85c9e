"""Main entry point for the rpgvault package."""

from rpgvault.rankings.cli import main


if __name__ == "__main__":
    main()
