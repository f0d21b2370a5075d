"""Daily progress log shared by directors and sessions."""

__all__: list[str] = []
