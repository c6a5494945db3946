"""Allow ``python -m ducktypes``."""

from .cli import main

raise SystemExit(main())
