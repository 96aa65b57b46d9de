import sys

from .run_connector import main

sys.exit(main())
