"""Allow running as ``python -m jsonvault``."""

import sys

from jsonvault.main import main

sys.exit(main())
