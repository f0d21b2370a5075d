"""Input validation for director names, paths and free-text context."""

__all__: list[str] = []
