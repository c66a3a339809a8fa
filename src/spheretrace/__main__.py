"""Allow running as python -m src.spheretrace."""

import sys

from src.spheretrace.cli import main

sys.exit(main())
