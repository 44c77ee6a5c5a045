"""
Allow running the package as a module.

This module enables running the package with:
    python -m go_vendorize

It simply delegates to the main() function from go_vendorize.py.
"""

import sys

from .go_vendorize import main

if __name__ == "__main__":
    sys.exit(main())
