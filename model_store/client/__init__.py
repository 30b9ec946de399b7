"""Command-line client for the model store"""
from .uploader import ChunkedUploader

__all__ = ["ChunkedUploader"]
