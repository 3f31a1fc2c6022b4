"""Entry point for ``python -m htb_browser``."""

import sys

from htb_browser.cli import main

if __name__ == "__main__":
    sys.exit(main())
