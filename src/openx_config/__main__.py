"""Allow running as: python -m openx_config <init|validate|start> [options]."""

import sys

from openx_config.cli import main

sys.exit(main())
