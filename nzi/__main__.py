import sys

from nzi.cli import main

sys.exit(main())
