# conftest.py — package directory
#
# Ensures that the repository root (the parent of launch_failure/) is on
# sys.path when pytest is invoked from anywhere, so "from launch_failure ..."
# imports resolve without requiring a package install.
#
# Usage:
#   pytest launch_failure/tests/ -v
#   pytest launch_failure/tests/test_engine.py -v

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))
