import sys

from foldsigs.cli import main

sys.exit(main())
