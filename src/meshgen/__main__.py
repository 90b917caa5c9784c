"""python -m meshgen, runs the CLI and exits with its return code"""

import sys

from meshgen.main import main

if __name__ == "__main__":
    sys.exit(main())
