import sys

from classdump.cli import main

sys.exit(main())
