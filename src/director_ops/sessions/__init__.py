"""Session checkpoint and resume bookkeeping."""

__all__: list[str] = []
