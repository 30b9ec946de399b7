"""Services module exports"""
from .chunk_store import ChunkStore, parse_chunk_index
from .locks import KeyedLock
from .names import derive_base_name, validate_name, validate_session_id
from .optimizer import Optimizer, PassThroughOptimizer, CommandOptimizer, build_optimizer
from .pipeline import PostProcessingPipeline, ProcessingResult, decompress_envelope, is_gzip
from .reassembler import SessionReassembler, FinalizeResult, parse_chunk_count
from .registry import AssetRegistry, AssetInfo

__all__ = [
    "ChunkStore",
    "parse_chunk_index",
    "KeyedLock",
    "derive_base_name",
    "validate_name",
    "validate_session_id",
    "Optimizer",
    "PassThroughOptimizer",
    "CommandOptimizer",
    "build_optimizer",
    "PostProcessingPipeline",
    "ProcessingResult",
    "decompress_envelope",
    "is_gzip",
    "SessionReassembler",
    "FinalizeResult",
    "parse_chunk_count",
    "AssetRegistry",
    "AssetInfo",
]
