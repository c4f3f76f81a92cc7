"""Run a backup pass: python -m simplebackup"""

import sys

from simplebackup.cli import main

if __name__ == "__main__":
    sys.exit(main())
