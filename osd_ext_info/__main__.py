import sys

from osd_ext_info.cli import main

sys.exit(main())
