"""Allow ``python -m slack_alert``."""

import sys

from slack_alert.runner import main

sys.exit(main())
