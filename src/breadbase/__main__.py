"""Entry point for 'python -m breadbase'."""

from breadbase.cli import main

if __name__ == "__main__":
    main()
