import sys

from icrbuild.cli import main

sys.exit(main())
