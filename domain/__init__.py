"""Pure domain model for client prioritization (no I/O)."""
