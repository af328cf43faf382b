import sys

from ctmetrics.cli import main

sys.exit(main())
