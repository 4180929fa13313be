"""Allow ``python -m jamaid``."""

import sys

from jamaid.cli import main

sys.exit(main())
