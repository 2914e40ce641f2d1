import sys

from scrollpad.cli import main

sys.exit(main())
