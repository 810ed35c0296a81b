"""File, manifest and URL helpers."""
