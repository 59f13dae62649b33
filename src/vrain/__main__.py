import sys

from vrain.cli import main

sys.exit(main())
