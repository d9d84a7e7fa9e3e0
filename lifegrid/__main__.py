"""
Package entry point.

Allows running the application via:

    python -m lifegrid

This simply forwards execution to lifegrid.cli.main().
"""

from lifegrid.cli import main

if __name__ == "__main__":
    main()
