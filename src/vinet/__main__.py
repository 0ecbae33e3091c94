import sys

from vinet.cli import main

sys.exit(main())
