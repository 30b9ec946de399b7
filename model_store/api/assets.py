"""
FastAPI endpoints for stored model assets
"""
import logging
from typing import Annotated
from urllib.parse import quote

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import FileResponse

from ..core.config import Settings
from ..core.errors import AssetNotFound, InvalidInput
from ..schemas import AssetInfoResponse, DeleteAssetResponse
from ..services import AssetRegistry
from .deps import get_registry, get_settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/models", tags=["models"])


@router.get("", response_model=list[AssetInfoResponse])
def list_models(registry: Annotated[AssetRegistry, Depends(get_registry)]):
    """Stored models, newest first"""
    assets = registry.list()
    logger.info(f"📋 Listing {len(assets)} models")
    return [AssetInfoResponse.model_validate(asset) for asset in assets]


@router.get("/{name}")
def get_model(
    name: str,
    registry: Annotated[AssetRegistry, Depends(get_registry)],
    settings: Annotated[Settings, Depends(get_settings)],
):
    """
    Serve a stored model.
    
    Stored names are never reused for different content, so responses are
    marked immutable and cached for a year. ETag and Last-Modified come from
    FileResponse.
    """
    try:
        path = registry.resolve(name)
    except InvalidInput as e:
        raise HTTPException(status_code=400, detail=str(e))
    except AssetNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    
    logger.info(f"📥 Serving model {path.name}")
    return FileResponse(
        path,
        media_type=settings.ASSET_CONTENT_TYPE,
        headers={
            "Content-Disposition": f"inline; filename*=UTF-8''{quote(path.name, safe='')}",
            "Cache-Control": settings.ASSET_CACHE_CONTROL,
        }
    )


@router.delete("/{name}", response_model=DeleteAssetResponse)
def delete_model(name: str, registry: Annotated[AssetRegistry, Depends(get_registry)]):
    """Delete a stored model"""
    logger.info(f"🗑️  DELETE /models/{name}")
    try:
        registry.delete(name)
    except InvalidInput as e:
        raise HTTPException(status_code=400, detail=str(e))
    except AssetNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    
    return DeleteAssetResponse(name=name)
