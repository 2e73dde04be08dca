"""Allow ``python -m ort_textgen``."""

import sys

from ort_textgen.cli import main

sys.exit(main())
