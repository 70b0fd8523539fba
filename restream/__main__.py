"""Entry point for ``python -m restream``."""

import sys

from restream.cli import main

sys.exit(main())
