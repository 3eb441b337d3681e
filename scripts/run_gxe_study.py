#!/usr/bin/env python3
"""
Run a gene-environment interaction simulation study from the command line
"""
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from gxesim.cli.utils import main

if __name__ == "__main__":
    sys.exit(main())
