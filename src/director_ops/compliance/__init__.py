"""Memory-bank structure checks."""

__all__: list[str] = []
