"""
Dependencies resolving the service objects built by create_app()
"""
from fastapi import Request

from ..services import AssetRegistry, ChunkStore, SessionReassembler


def get_chunk_store(request: Request) -> ChunkStore:
    return request.app.state.chunk_store


def get_reassembler(request: Request) -> SessionReassembler:
    return request.app.state.reassembler


def get_registry(request: Request) -> AssetRegistry:
    return request.app.state.registry


def get_settings(request: Request):
    return request.app.state.settings
