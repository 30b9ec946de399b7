"""
Domain errors raised by the upload, processing and registry services.

The API layer maps each of these onto an HTTP status; nothing below the API
layer knows about HTTP.
"""
from typing import Optional


class UploadError(Exception):
    """Base class for all model store errors"""


class InvalidInput(UploadError, ValueError):
    """Missing or malformed request field, or an unsafe name"""


class SessionNotFound(UploadError):
    def __init__(self, session_id: str):
        super().__init__(f"Upload session {session_id} not found")
        self.session_id = session_id


class IncompleteUpload(UploadError):
    def __init__(self, session_id: str, missing_index: Optional[int]):
        if missing_index is None:
            message = f"Upload session {session_id} is incomplete"
        else:
            message = f"Chunk {missing_index} is missing for upload session {session_id}"
        super().__init__(message)
        self.session_id = session_id
        self.missing_index = missing_index


class DecompressionError(UploadError):
    """Reassembled payload claims a compressed envelope but cannot be decoded"""


class ProcessingError(UploadError):
    """Unexpected failure while finalizing an upload"""


class AssetNotFound(UploadError, LookupError):
    def __init__(self, name: str):
        super().__init__(f"Asset {name} not found")
        self.name = name


class OptimizerError(UploadError):
    """External optimization transform failed; always degraded to pass-through"""
