"""Allow ``python -m quotegen``."""

import sys

from quotegen.cli import main

sys.exit(main())
