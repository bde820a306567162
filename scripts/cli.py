#!/usr/bin/env python3
"""Entry point for the clusterops command line from a source checkout.

Usage:
    python scripts/cli.py join -f Clusterfile --nodes 192.168.0.5
    python scripts/cli.py reset -f Clusterfile
"""

import os
import sys

# Ensure project root is on path so `from clusterops.…` works
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from clusterops.cli.main import main


if __name__ == "__main__":
    sys.exit(main())
