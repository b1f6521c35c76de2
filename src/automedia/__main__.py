import sys

from automedia.cli import main

sys.exit(main())
