import sys

from relative_deps.cli import main

sys.exit(main())
