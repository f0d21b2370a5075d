"""Hive coordination: director registry, broadcasts, handoffs and consensus.

Modules:
- `models`: the persisted hive document
- `consensus`: quorum tallying and resolution
- `coordination`: operations over one loaded document
"""

__all__: list[str] = []
