"""
Minimal import harness for embedding the resolvers in another service.

This module must not import app wiring or FastAPI.
"""

import placegate.models  # noqa: F401
import placegate.services  # noqa: F401
import placegate.services.slug_writes  # noqa: F401
