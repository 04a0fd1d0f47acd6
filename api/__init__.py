"""HTTP API for the client prioritization engine."""

__version__ = "1.0.0"
