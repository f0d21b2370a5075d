"""Feature tracking with the seven-gate validation pipeline."""

__all__: list[str] = []
