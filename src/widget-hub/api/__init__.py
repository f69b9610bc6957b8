"""Widget Hub HTTP API."""
