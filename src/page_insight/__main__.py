import sys

from page_insight.cli import main

sys.exit(main())
