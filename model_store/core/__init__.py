"""Core module exports"""
from .config import settings, Settings
from .database import Base, create_engine_for, create_session_maker, ensure_database_dir, get_db
from .errors import (
    UploadError,
    InvalidInput,
    SessionNotFound,
    IncompleteUpload,
    DecompressionError,
    ProcessingError,
    AssetNotFound,
    OptimizerError,
)

__all__ = [
    "settings",
    "Settings",
    "Base",
    "create_engine_for",
    "create_session_maker",
    "ensure_database_dir",
    "get_db",
    "UploadError",
    "InvalidInput",
    "SessionNotFound",
    "IncompleteUpload",
    "DecompressionError",
    "ProcessingError",
    "AssetNotFound",
    "OptimizerError",
]
