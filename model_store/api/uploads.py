"""
FastAPI endpoints for chunked uploads
"""
import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Body, Depends, File, Form, HTTPException, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.errors import (
    DecompressionError,
    IncompleteUpload,
    InvalidInput,
    ProcessingError,
    SessionNotFound,
)
from ..schemas import (
    CancelUploadResponse,
    ChunkUploadResponse,
    FinalizeRequest,
    FinalizeResponse,
    UploadStatusResponse,
)
from ..services import ChunkStore, SessionReassembler
from .deps import get_chunk_store, get_reassembler

logger = logging.getLogger(__name__)

router = APIRouter(tags=["uploads"])


@router.post("/upload-chunk", response_model=ChunkUploadResponse)
async def upload_chunk(
    db: Annotated[AsyncSession, Depends(get_db)],
    chunk_store: Annotated[ChunkStore, Depends(get_chunk_store)],
    file_id: Annotated[Optional[str], Form(alias="fileId")] = None,
    chunk_index: Annotated[Optional[str], Form(alias="chunkIndex")] = None,
    chunk: Annotated[Optional[UploadFile], File(description="Chunk bytes")] = None,
):
    """
    Store one chunk of an upload session.
    
    Idempotent per index: re-sending a chunk overwrites the previous bytes.
    The session is created by its first chunk.
    """
    data = await chunk.read() if chunk is not None else None
    
    try:
        await chunk_store.put_chunk(db, file_id, chunk_index, data)
    except InvalidInput as e:
        logger.info(f"Rejected chunk upload: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    
    return ChunkUploadResponse(
        session_id=file_id,
        chunk_index=int(chunk_index),
        size=len(data),
        message=f"Chunk {chunk_index} uploaded."
    )


@router.post("/finalize-upload", response_model=FinalizeResponse)
async def finalize_upload(
    db: Annotated[AsyncSession, Depends(get_db)],
    reassembler: Annotated[SessionReassembler, Depends(get_reassembler)],
    request: Annotated[Optional[FinalizeRequest], Body()] = None,
):
    """
    Reassemble a session's chunks, post-process them and store the model.
    
    Chunks are removed afterwards whether or not the model was stored.
    """
    request = request or FinalizeRequest()
    logger.info(
        f"📦 Finalize session={request.session_id} "
        f"total_chunks={request.total_chunks} file_name={request.file_name}"
    )
    
    try:
        result = await reassembler.finalize(db, request.session_id, request.total_chunks, request.file_name)
    except InvalidInput as e:
        raise HTTPException(status_code=400, detail=str(e))
    except SessionNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except IncompleteUpload as e:
        raise HTTPException(
            status_code=400,
            detail={"message": str(e), "missing_index": e.missing_index}
        )
    except (DecompressionError, ProcessingError) as e:
        raise HTTPException(status_code=500, detail=str(e))
    
    return FinalizeResponse(
        asset_name=result.asset.name,
        size_bytes=result.asset.size,
        optimized=result.processing.optimized,
        message=f"File {result.asset.name} assembled and stored."
    )


@router.get("/upload/{session_id}/status", response_model=UploadStatusResponse)
async def get_upload_status(
    session_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    chunk_store: Annotated[ChunkStore, Depends(get_chunk_store)],
):
    """Which chunk indices the server holds for a session"""
    try:
        record = await chunk_store.get_session(db, session_id)
    except InvalidInput as e:
        raise HTTPException(status_code=400, detail=str(e))
    if record is None:
        raise HTTPException(status_code=404, detail="Upload session not found")
    
    return UploadStatusResponse(
        session_id=record.session_id,
        received_chunks=record.chunk_indices,
        total_bytes=record.total_bytes,
        created_at=record.created_at,
        updated_at=record.updated_at
    )


@router.delete("/upload/{session_id}", response_model=CancelUploadResponse, status_code=status.HTTP_200_OK)
async def cancel_upload(
    session_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    chunk_store: Annotated[ChunkStore, Depends(get_chunk_store)],
):
    """Abandon a session and remove its chunks"""
    try:
        await chunk_store.cancel(db, session_id)
    except InvalidInput as e:
        raise HTTPException(status_code=400, detail=str(e))
    except SessionNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    
    return CancelUploadResponse(session_id=session_id)
