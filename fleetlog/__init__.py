"""FleetLog: local-first farm machinery usage tracking."""

__version__ = "0.1.0"
