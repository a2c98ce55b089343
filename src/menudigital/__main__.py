import sys

from menudigital.cli import main

sys.exit(main())
