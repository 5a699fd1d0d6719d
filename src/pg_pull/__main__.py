import sys

from pg_pull.cli import main

sys.exit(main())
