"""Chunked model upload client, the scripted equivalent of the browser uploader."""
import gzip
import os
import sys
import time
import uuid
from pathlib import Path
from typing import Iterator, Optional
from urllib.parse import quote

import requests

API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:3000")
CHUNK_SIZE = 1024 * 1024  # 1MB, same as the browser client


class ChunkedUploader:
    """Client for uploading .glb models as gzipped, fixed-size chunks."""
    
    def __init__(
        self,
        api_url: str = API_BASE_URL,
        chunk_size: int = CHUNK_SIZE,
        compress: bool = True,
        session: Optional[requests.Session] = None
    ):
        self.api_url = api_url.rstrip("/")
        self.chunk_size = chunk_size
        self.compress = compress
        self.http = session or requests.Session()
    
    @staticmethod
    def base_name(file_path: Path) -> str:
        """scene.glb -> scene"""
        return file_path.name[: -len(file_path.suffix)] if file_path.suffix else file_path.name
    
    def prepare_payload(self, file_path: Path) -> bytes:
        data = file_path.read_bytes()
        return gzip.compress(data) if self.compress else data
    
    def iter_chunks(self, payload: bytes) -> Iterator[bytes]:
        for offset in range(0, len(payload), self.chunk_size):
            yield payload[offset:offset + self.chunk_size]
    
    def upload_chunk(self, session_id: str, chunk_index: int, chunk_data: bytes) -> dict:
        response = self.http.post(
            f"{self.api_url}/upload-chunk",
            data={"fileId": session_id, "chunkIndex": str(chunk_index)},
            files={"chunk": (f"chunk_{chunk_index}", chunk_data, "application/octet-stream")}
        )
        response.raise_for_status()
        return response.json()
    
    def finalize(self, session_id: str, total_chunks: int, base_name: str) -> dict:
        response = self.http.post(
            f"{self.api_url}/finalize-upload",
            json={"fileId": session_id, "totalChunks": total_chunks, "fileName": base_name}
        )
        response.raise_for_status()
        return response.json()
    
    def list_models(self) -> list:
        response = self.http.get(f"{self.api_url}/models")
        response.raise_for_status()
        return response.json()
    
    def delete_model(self, name: str) -> dict:
        response = self.http.delete(f"{self.api_url}/models/{quote(name, safe='')}")
        response.raise_for_status()
        return response.json()
    
    def upload_file(self, file_path, session_id: Optional[str] = None) -> dict:
        """
        Upload a .glb file and return the finalize response.
        
        Chunks are sent one at a time in index order; the server reassembles
        by index, so a failed chunk can simply be re-sent.
        """
        file_path = Path(file_path)
        if not file_path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")
        if file_path.suffix.lower() != ".glb":
            raise ValueError("Only .glb files are supported")
        
        session_id = session_id or f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}"
        
        print(f"Compressing {file_path.name} ({file_path.stat().st_size / (1024*1024):.2f} MB)...")
        payload = self.prepare_payload(file_path)
        total_chunks = max(1, (len(payload) + self.chunk_size - 1) // self.chunk_size)
        
        print(f"Uploading {total_chunks} chunks for session {session_id}...")
        start_time = time.time()
        for chunk_index, chunk_data in enumerate(self.iter_chunks(payload)):
            self.upload_chunk(session_id, chunk_index, chunk_data)
            print(f"  ✓ Chunk {chunk_index + 1}/{total_chunks} ({(chunk_index + 1) / total_chunks * 100:.0f}%)")
        
        result = self.finalize(session_id, total_chunks, self.base_name(file_path))
        
        print(f"\n✓ Upload completed: {result['asset_name']} ({result['size_bytes']} bytes)")
        print(f"  Time: {time.time() - start_time:.2f} seconds")
        return result


def main():
    """CLI for the chunked uploader."""
    if len(sys.argv) < 2:
        print("Usage:")
        print("  Upload model:  python -m model_store.client.uploader <file.glb>")
        print("  List models:   python -m model_store.client.uploader --list")
        print("  Delete model:  python -m model_store.client.uploader --delete <name>")
        sys.exit(1)
    
    uploader = ChunkedUploader()
    
    try:
        if sys.argv[1] == "--list":
            for model in uploader.list_models():
                print(f"{model['name']:<40} {model['size']:>12} {model['modified_time']}")
        elif sys.argv[1] == "--delete" and len(sys.argv) > 2:
            uploader.delete_model(sys.argv[2])
            print(f"✓ Deleted {sys.argv[2]}")
        else:
            uploader.upload_file(sys.argv[1])
    except Exception as e:
        print(f"\n✗ Request failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
