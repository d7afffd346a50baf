"""Allow ``python -m transactions_client``."""

import sys

from transactions_client.cli import main

sys.exit(main())
