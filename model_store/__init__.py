"""Chunked 3D model upload service."""

__version__ = "1.0.0"
