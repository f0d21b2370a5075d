"""director-ops.

Local-first coordination for director-based agent teams:
- feature tracking with an ordered seven-gate validation pipeline
- hive coordination (director status, broadcasts, handoffs, consensus votes)
- session checkpoints
all persisted as JSON documents on disk.
"""

__version__ = "0.1.0"

from director_ops.core.config import DirectorOpsSettings

__all__ = ["__version__", "DirectorOpsSettings"]
