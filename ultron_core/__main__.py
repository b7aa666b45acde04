import sys

from ultron_core.cli import main


sys.exit(main())
