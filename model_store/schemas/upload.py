"""
Pydantic schemas for the chunk upload and finalize endpoints
"""
from datetime import datetime
from typing import Optional, Union
from pydantic import BaseModel, ConfigDict, Field


class ChunkUploadResponse(BaseModel):
    """Acknowledgement for one stored chunk"""
    session_id: str
    chunk_index: int
    size: int
    message: str


class FinalizeRequest(BaseModel):
    """
    Finalize a session. Accepts the browser client's camelCase keys as well as
    snake_case. Fields are optional here so missing values surface as 400s from
    the service instead of 422 validation errors.
    """
    model_config = ConfigDict(populate_by_name=True)
    
    session_id: Optional[str] = Field(None, alias="fileId", description="Client-generated upload session id")
    total_chunks: Optional[Union[int, str]] = Field(None, alias="totalChunks", description="Number of chunks to reassemble")
    file_name: Optional[str] = Field(None, alias="fileName", description="Client file name, extension optional")


class FinalizeResponse(BaseModel):
    """Successful finalize response"""
    asset_name: str
    size_bytes: int
    optimized: bool
    message: str


class UploadStatusResponse(BaseModel):
    session_id: str
    received_chunks: list[int]
    total_bytes: int
    created_at: datetime
    updated_at: datetime


class CancelUploadResponse(BaseModel):
    session_id: str
    status: str = "cancelled"
