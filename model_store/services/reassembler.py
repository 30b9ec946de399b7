"""
Session reassembler: turns a finished upload session into a stored asset

finalize() walks the session through
    merging -> decompressing -> optimizing (best effort) -> committing -> cleaning up
and always ends by removing the session's chunks and record, whether the
asset was committed or not.
"""
import asyncio
import io
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.errors import IncompleteUpload, InvalidInput, ProcessingError, SessionNotFound, UploadError
from .chunk_store import ChunkStore
from .names import derive_base_name, validate_session_id
from .pipeline import PostProcessingPipeline, ProcessingResult
from .registry import AssetInfo, AssetRegistry

logger = logging.getLogger(__name__)


@dataclass
class FinalizeResult:
    asset: AssetInfo
    processing: ProcessingResult


def parse_chunk_count(value) -> int:
    if value is None or isinstance(value, bool):
        raise InvalidInput("totalChunks is required")
    try:
        count = int(value)
    except (TypeError, ValueError):
        raise InvalidInput(f"totalChunks must be an integer, got {value!r}") from None
    if count < 1:
        raise InvalidInput("totalChunks must be at least 1")
    return count


class SessionReassembler:
    
    def __init__(
        self,
        chunk_store: ChunkStore,
        pipeline: PostProcessingPipeline,
        registry: AssetRegistry
    ):
        self.chunk_store = chunk_store
        self.pipeline = pipeline
        self.registry = registry
    
    def merge(self, session_id: str, expected_count: int, received: set[int]) -> bytes:
        """
        Concatenate chunks 0..expected_count-1 in index order.
        
        Arrival order is irrelevant; the first index that was never recorded
        or whose file is gone aborts the merge with IncompleteUpload.
        """
        extra = sorted(index for index in received if index >= expected_count)
        if extra:
            logger.warning(f"Session {session_id} has chunks beyond totalChunks={expected_count}: {extra}, ignoring")
        
        buffer = io.BytesIO()
        for index in range(expected_count):
            if index not in received:
                raise IncompleteUpload(session_id, index)
            try:
                buffer.write(self.chunk_store.read_chunk(session_id, index))
            except FileNotFoundError:
                raise IncompleteUpload(session_id, index) from None
        
        return buffer.getvalue()
    
    async def finalize(
        self,
        db: AsyncSession,
        session_id,
        expected_chunk_count,
        file_name
    ) -> FinalizeResult:
        session_id = validate_session_id(session_id)
        base_name = derive_base_name(file_name)
        expected_chunk_count = parse_chunk_count(expected_chunk_count)
        
        loop = asyncio.get_running_loop()
        
        async with self.chunk_store.locks.hold(session_id):
            record = await self.chunk_store.get_session(db, session_id)
            if record is None:
                raise SessionNotFound(session_id)
            
            received = set(record.chunk_indices)
            final_path: Optional[Path] = None
            
            try:
                logger.info(f"🔗 Merging {expected_chunk_count} chunks for session {session_id}")
                merged = await loop.run_in_executor(None, self.merge, session_id, expected_chunk_count, received)
                
                logger.info(f"⚙️ Post-processing {len(merged)} bytes for session {session_id}")
                processed = await self.pipeline.process(merged)
                
                final_path = await loop.run_in_executor(None, self.registry.reserve_name, base_name)
                asset = await loop.run_in_executor(None, self.registry.commit, final_path, processed.data)
                
                logger.info(f"🎉 Session {session_id} finalized as {asset.name} ({asset.size} bytes)")
                return FinalizeResult(asset=asset, processing=processed)
            
            except IncompleteUpload as e:
                logger.info(f"Session {session_id} incomplete: missing chunk {e.missing_index}")
                raise
            except UploadError as e:
                logger.error(f"❌ Finalize failed for session {session_id}: {e}")
                self._discard_asset(final_path)
                raise
            except Exception as e:
                logger.error(f"❌ Unexpected error finalizing session {session_id}: {e}")
                self._discard_asset(final_path)
                raise ProcessingError(f"Failed to finalize upload {session_id}") from e
            except BaseException:
                # cancelled mid-finalize: never leave a placeholder behind
                logger.warning(f"Finalize interrupted for session {session_id}")
                self._discard_asset(final_path)
                raise
            finally:
                await self.chunk_store.discard(db, session_id)
    
    def _discard_asset(self, final_path: Optional[Path]) -> None:
        if final_path is None:
            return
        try:
            self.registry.discard(final_path)
        except Exception as e:
            logger.error(f"❌ Failed to discard partial asset {final_path}: {e}")
