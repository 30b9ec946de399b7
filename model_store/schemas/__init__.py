"""Schemas module exports"""
from .upload import (
    ChunkUploadResponse,
    FinalizeRequest,
    FinalizeResponse,
    UploadStatusResponse,
    CancelUploadResponse,
)
from .asset import AssetInfoResponse, DeleteAssetResponse

__all__ = [
    "ChunkUploadResponse",
    "FinalizeRequest",
    "FinalizeResponse",
    "UploadStatusResponse",
    "CancelUploadResponse",
    "AssetInfoResponse",
    "DeleteAssetResponse",
]
