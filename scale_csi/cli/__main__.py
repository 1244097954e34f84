#!/usr/bin/env python3
"""
Entry point for scale-csi CLI tool.
"""

import sys

from scale_csi.cli.cli import main

if __name__ == "__main__":
    sys.exit(main())
