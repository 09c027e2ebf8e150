"""Exhibition catalogue endpoints."""
