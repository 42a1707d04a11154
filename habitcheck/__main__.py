import sys

from habitcheck.cli import main

sys.exit(main())
