"""Allow ``python -m repoflip``."""

import sys

from repoflip.cli import main

sys.exit(main())
