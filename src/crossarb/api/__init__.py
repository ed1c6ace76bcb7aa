"""HTTP API exposing scans, trade logs and dashboard statistics."""

from crossarb.api.server import create_app, main


__all__ = [
    "create_app",
    "main",
]
