import sys

from fetchmap.cli import main

sys.exit(main())
