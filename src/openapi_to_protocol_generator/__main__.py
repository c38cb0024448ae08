"""Allow ``python -m openapi_to_protocol_generator``."""

from .cli import main

raise SystemExit(main())
