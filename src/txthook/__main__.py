import sys

from txthook.cli import main

sys.exit(main())
