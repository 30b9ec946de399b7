"""
Pydantic schemas for stored model assets
"""
from datetime import datetime
from pydantic import BaseModel, ConfigDict


class AssetInfoResponse(BaseModel):
    """Stored asset metadata, derived from the filesystem at query time"""
    model_config = ConfigDict(from_attributes=True)
    
    name: str
    size: int
    modified_time: datetime


class DeleteAssetResponse(BaseModel):
    name: str
    status: str = "deleted"
