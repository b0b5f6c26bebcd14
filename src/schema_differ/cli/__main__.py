"""Allow ``python -m schema_differ.cli``."""

import sys

from schema_differ.cli import main

sys.exit(main())
