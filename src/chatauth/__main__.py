"""Entry point for 'python -m chatauth' command."""

from chatauth.cli import main

if __name__ == "__main__":
    main()
