"""
Asset registry: the durable directory of finalized models

Names are unique. A colliding base name gets an incrementing suffix
(scene.glb, scene_1.glb, scene_2.glb, ...) and existing files are never
overwritten. Listing is derived from filesystem metadata at query time.
"""
import logging
import os
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from ..core.errors import AssetNotFound
from .names import validate_name

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AssetInfo:
    name: str
    size: int
    modified_time: datetime
    
    @classmethod
    def from_path(cls, path: Path) -> "AssetInfo":
        stat = path.stat()
        return cls(
            name=path.name,
            size=stat.st_size,
            modified_time=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc)
        )


class AssetRegistry:
    
    def __init__(self, root: Path, extension: str = "glb"):
        self.root = Path(root)
        self.extension = extension.lstrip(".")
    
    def ensure_root(self) -> None:
        self.root.mkdir(parents=True, exist_ok=True)
    
    def candidate_name(self, base_name: str, counter: int) -> str:
        stem = base_name if counter == 0 else f"{base_name}_{counter}"
        return f"{stem}.{self.extension}"
    
    def reserve_name(self, base_name: str) -> Path:
        """
        Claim the first free name for base_name.
        
        Each candidate is created with O_EXCL, so two concurrent reservations
        for the same base name always end up with different files. The
        returned path is an empty placeholder until commit() fills it.
        """
        self.ensure_root()
        counter = 0
        while True:
            candidate = self.root / self.candidate_name(base_name, counter)
            try:
                fd = os.open(candidate, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
            except FileExistsError:
                counter += 1
                continue
            os.close(fd)
            logger.info(f"🔖 Reserved asset name {candidate.name}")
            return candidate
    
    def commit(self, final_path: Path, data: bytes) -> AssetInfo:
        """Write data to a hidden sibling, then swap it over the placeholder."""
        tmp_path = final_path.with_name(f".{final_path.name}.{uuid.uuid4().hex[:8]}.part")
        try:
            with open(tmp_path, "wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, final_path)
        except Exception:
            tmp_path.unlink(missing_ok=True)
            raise
        
        logger.info(f"✅ Committed asset {final_path.name} ({len(data)} bytes)")
        return AssetInfo.from_path(final_path)
    
    def discard(self, final_path: Path) -> None:
        """Remove a reserved or partially committed asset file."""
        final_path.unlink(missing_ok=True)
        logger.info(f"🗑️  Discarded uncommitted asset {final_path.name}")
    
    def list(self) -> list[AssetInfo]:
        """All stored assets, most recently modified first."""
        if not self.root.exists():
            return []
        
        suffix = f".{self.extension}"
        assets = []
        with os.scandir(self.root) as entries:
            for entry in entries:
                if entry.name.startswith(".") or not entry.name.endswith(suffix):
                    continue
                if not entry.is_file():
                    continue
                try:
                    assets.append(AssetInfo.from_path(Path(entry.path)))
                except FileNotFoundError:
                    # deleted between scandir and stat
                    continue
        
        assets.sort(key=lambda asset: (asset.modified_time, asset.name), reverse=True)
        return assets
    
    def resolve(self, name) -> Path:
        """Validated path of an existing asset; InvalidInput / AssetNotFound otherwise."""
        name = validate_name(name, "name", max_length=255)
        path = self.root / name
        if not path.is_file():
            raise AssetNotFound(name)
        return path
    
    def get(self, name) -> bytes:
        return self.resolve(name).read_bytes()
    
    def delete(self, name) -> None:
        path = self.resolve(name)
        try:
            path.unlink()
        except FileNotFoundError:
            raise AssetNotFound(path.name) from None
        logger.info(f"🗑️  Deleted asset {path.name}")
