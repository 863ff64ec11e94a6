"""Main entry point dispatcher for guibox commands."""


def main():
    """Point at the per-application commands."""
    print("guibox runs through per-application commands:")
    print("  guibox-chrome   Google Chrome")
    print("  guibox-discord  Discord")


if __name__ == "__main__":
    main()
