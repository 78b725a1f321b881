"""Allow `python -m fastapi_handler_scopes`."""

import sys

from fastapi_handler_scopes.cli import main

sys.exit(main())
