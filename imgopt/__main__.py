"""
Main entry point for running the package as a module.

Usage:
    python -m imgopt convert /images/product/extra.png --web-root /var/www
    python -m imgopt batch --web-root /var/www --size 576 --size 768
    python -m imgopt probe
"""

import sys
from .cli import main

if __name__ == '__main__':
    sys.exit(main())
