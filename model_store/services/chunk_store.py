"""
Chunk store: durable temporary storage for in-progress upload sessions

Layout on disk:
    {TEMP_UPLOAD_DIR}/{session_id}/chunk_{index}

The upload_sessions table records which indices have arrived; the files hold
the bytes. A re-sent index overwrites the previous file (last write wins).
"""
import asyncio
import logging
import shutil
from pathlib import Path
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.errors import InvalidInput, SessionNotFound
from ..models import UploadSession
from .locks import KeyedLock
from .names import validate_session_id

logger = logging.getLogger(__name__)


def parse_chunk_index(value) -> int:
    """Accept an int or a decimal string (form fields arrive as text)."""
    if value is None or isinstance(value, bool):
        raise InvalidInput("chunkIndex is required")
    if isinstance(value, str):
        value = value.strip()
        if not (value.isascii() and value.isdigit()):
            raise InvalidInput(f"chunkIndex must be a non-negative integer, got {value!r}")
        return int(value)
    if not isinstance(value, int) or value < 0:
        raise InvalidInput(f"chunkIndex must be a non-negative integer, got {value!r}")
    return value


class ChunkStore:
    """Chunk blobs on the filesystem plus their session records"""
    
    def __init__(self, temp_dir: Path, locks: KeyedLock, max_chunk_bytes: Optional[int] = None):
        self.temp_dir = Path(temp_dir)
        self.locks = locks
        self.max_chunk_bytes = max_chunk_bytes
    
    def ensure_root(self) -> None:
        self.temp_dir.mkdir(parents=True, exist_ok=True)
    
    def session_dir(self, session_id: str) -> Path:
        return self.temp_dir / session_id
    
    def chunk_path(self, session_id: str, index: int) -> Path:
        return self.session_dir(session_id) / f"chunk_{index}"
    
    async def put_chunk(
        self,
        db: AsyncSession,
        session_id,
        index,
        data: Optional[bytes]
    ) -> UploadSession:
        """
        Store one chunk and record it against its session.
        
        Creates the session (directory + record) on its first chunk. Raises
        InvalidInput before touching storage if any field is missing or bad.
        """
        session_id = validate_session_id(session_id)
        index = parse_chunk_index(index)
        if not data:
            raise InvalidInput("chunk is required and must not be empty")
        if self.max_chunk_bytes and len(data) > self.max_chunk_bytes:
            raise InvalidInput(
                f"chunk is {len(data)} bytes, larger than the {self.max_chunk_bytes} byte limit"
            )
        
        async with self.locks.hold(session_id):
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(None, self._write_chunk, session_id, index, data)
            
            record = await db.get(UploadSession, session_id)
            if record is None:
                record = UploadSession(session_id=session_id, received_chunks={str(index): len(data)})
                db.add(record)
                logger.info(f"📂 Started upload session {session_id}")
            else:
                received = dict(record.received_chunks)
                if str(index) in received:
                    logger.info(f"♻️ Chunk {index} re-sent for session {session_id}, overwriting")
                received[str(index)] = len(data)
                record.received_chunks = received
            await db.commit()
        
        logger.info(f"📥 Stored chunk {index} ({len(data)} bytes) for session {session_id}")
        return record
    
    def _write_chunk(self, session_id: str, index: int, data: bytes) -> None:
        session_dir = self.session_dir(session_id)
        session_dir.mkdir(parents=True, exist_ok=True)
        self.chunk_path(session_id, index).write_bytes(data)
    
    def read_chunk(self, session_id: str, index: int) -> bytes:
        """Raises FileNotFoundError when the chunk file is absent."""
        return self.chunk_path(session_id, index).read_bytes()
    
    async def get_session(self, db: AsyncSession, session_id) -> Optional[UploadSession]:
        session_id = validate_session_id(session_id)
        return await db.get(UploadSession, session_id)
    
    async def discard(self, db: AsyncSession, session_id: str) -> None:
        """
        Remove all chunk data and the record for a session.
        
        Best effort: failures are logged, never raised, so cleanup cannot mask
        the error that triggered it. Caller must hold the session lock.
        """
        try:
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(None, self._remove_session_dir, session_id)
        except Exception as e:
            logger.error(f"❌ Failed to remove chunk directory for session {session_id}: {e}")
        
        try:
            record = await db.get(UploadSession, session_id)
            if record is not None:
                await db.delete(record)
                await db.commit()
        except Exception as e:
            logger.error(f"❌ Failed to delete session record {session_id}: {e}")
            try:
                await db.rollback()
            except Exception as rollback_error:
                logger.error(f"❌ Rollback failed for session {session_id}: {rollback_error}")
        
        logger.info(f"🧹 Cleaned up upload session {session_id}")
    
    def _remove_session_dir(self, session_id: str) -> None:
        session_dir = self.session_dir(session_id)
        if session_dir.exists():
            shutil.rmtree(session_dir)
    
    async def cancel(self, db: AsyncSession, session_id) -> None:
        """Explicitly abandon a session."""
        session_id = validate_session_id(session_id)
        async with self.locks.hold(session_id):
            record = await db.get(UploadSession, session_id)
            if record is None and not self.session_dir(session_id).exists():
                raise SessionNotFound(session_id)
            await self.discard(db, session_id)
        logger.info(f"🛑 Cancelled upload session {session_id}")
