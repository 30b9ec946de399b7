"""
Database models for chunked upload sessions

The chunk bytes live on disk under the temp area; this table is the
authoritative record of which chunk indices a session has received.
"""
from datetime import datetime, timezone

from sqlalchemy import JSON, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from ..core.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UploadSession(Base):
    """
    One in-progress upload.
    
    received_chunks maps the chunk index (as a string, JSON keys are strings)
    to the byte size of the most recent write for that index:
      {"0": 1048576, "1": 1048576, "2": 524288}
    """
    __tablename__ = "upload_sessions"
    
    session_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    received_chunks: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)
    
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utcnow,
        onupdate=_utcnow,
        nullable=False
    )
    
    @property
    def chunk_indices(self) -> list[int]:
        return sorted(int(index) for index in self.received_chunks)
    
    @property
    def total_bytes(self) -> int:
        return sum(self.received_chunks.values())
    
    def __repr__(self):
        return f"<UploadSession(session_id={self.session_id}, chunks={len(self.received_chunks)})>"
