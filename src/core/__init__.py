"""Markup conversion, batch orchestration, logging and error types."""
