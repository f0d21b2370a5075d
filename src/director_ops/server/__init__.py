"""FastAPI server adapter for director-ops.

This module exposes a REST API over the core operations.

Design intent:
- Keep business logic in `director_ops.features` and `director_ops.hive`
- Keep server-specific concerns (routing, CORS, error mapping) here
"""

from __future__ import annotations

__all__ = ["create_app"]

from director_ops.server.app import create_app
