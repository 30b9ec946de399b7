"""
Post-processing pipeline applied to reassembled uploads

Stages, each switchable:
  1. decompression - gzip envelope -> raw model bytes (hard failure if malformed)
  2. optimization  - external transform, best effort (falls back to input)
"""
import gzip
import logging
import zlib
from dataclasses import dataclass
from typing import Optional

from ..core.errors import DecompressionError, OptimizerError
from .optimizer import Optimizer

logger = logging.getLogger(__name__)

GZIP_MAGIC = b"\x1f\x8b"


def is_gzip(data: bytes) -> bool:
    return data[:2] == GZIP_MAGIC


def decompress_envelope(data: bytes) -> bytes:
    try:
        return gzip.decompress(data)
    except (OSError, EOFError, zlib.error) as e:
        raise DecompressionError(f"Malformed gzip payload: {e}") from e


@dataclass
class ProcessingResult:
    data: bytes
    input_size: int
    decompressed: bool = False
    optimized: bool = False
    
    @property
    def output_size(self) -> int:
        return len(self.data)


class PostProcessingPipeline:
    
    def __init__(self, decompress: bool = True, optimizer: Optional[Optimizer] = None):
        self.decompress = decompress
        self.optimizer = optimizer
    
    async def process(self, raw: bytes) -> ProcessingResult:
        result = ProcessingResult(data=raw, input_size=len(raw))
        
        if self.decompress and is_gzip(raw):
            result.data = decompress_envelope(raw)
            result.decompressed = True
            logger.info(f"Decompressed payload: {len(raw)} → {len(result.data)} bytes")
        
        if self.optimizer is not None:
            before = result.data
            try:
                optimized = await self.optimizer.optimize(before)
            except OptimizerError as e:
                logger.warning(f"⚠️ Optimization skipped, storing unoptimized model: {e}")
            else:
                result.data = optimized
                result.optimized = True
                reduction = (1 - len(optimized) / len(before)) * 100 if before else 0.0
                logger.info(
                    f"Optimized with {self.optimizer.name}: "
                    f"{len(before) / (1024*1024):.2f}MB → {len(optimized) / (1024*1024):.2f}MB "
                    f"({reduction:.1f}% reduction)"
                )
        
        return result
