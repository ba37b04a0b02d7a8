"""Allow ``python -m divzero <file.dump>``."""

import sys

from divzero.checkers import main

if __name__ == "__main__":
    sys.exit(main())
