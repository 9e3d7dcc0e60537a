"""
repometrics - commit-history code growth metrics.

This is the main entry point that runs the CLI from the repometrics package.
"""

import os
import sys

# Version check
if sys.version_info < (3, 8):
    print("Python 3.8 or higher is required for repo_metrics", file=sys.stderr)
    sys.exit(1)

# Set locale for consistent git output
os.environ['LC_ALL'] = 'C'

from repometrics.repometrics_cli import main


if __name__ == '__main__':
    sys.exit(main())
