"""Models module exports"""
from .database import UploadSession

__all__ = ["UploadSession"]
