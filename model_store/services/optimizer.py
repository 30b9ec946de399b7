"""
Mesh optimization transforms

The optimizer is an external, best-effort step. Any failure is reported as
OptimizerError and the pipeline falls back to the unoptimized bytes.
"""
import asyncio
import logging
import shlex
import subprocess
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from ..core.errors import OptimizerError

logger = logging.getLogger(__name__)


class Optimizer(ABC):
    
    name = "optimizer"
    
    @abstractmethod
    async def optimize(self, data: bytes) -> bytes:
        """Return re-encoded bytes or raise OptimizerError."""


class PassThroughOptimizer(Optimizer):
    """For environments without an optimization tool"""
    
    name = "passthrough"
    
    async def optimize(self, data: bytes) -> bytes:
        return data


class CommandOptimizer(Optimizer):
    """
    Run an external command-line optimizer with a timeout.
    
    The command is a template with {input} and {output} placeholders, e.g.
        gltf-pipeline -i {input} -o {output} -d
    Each run gets its own scratch directory which is removed afterwards.
    """
    
    def __init__(self, command: str, timeout: float = 120.0, work_dir: Optional[Path] = None):
        if "{input}" not in command or "{output}" not in command:
            raise ValueError("Optimizer command must contain {input} and {output} placeholders")
        self.command = command
        self.timeout = timeout
        self.work_dir = Path(work_dir) if work_dir else None
        self.name = shlex.split(command)[0]
    
    def build_command(self, input_path: Path, output_path: Path) -> list[str]:
        return [
            part.format(input=str(input_path), output=str(output_path))
            for part in shlex.split(self.command)
        ]
    
    async def optimize(self, data: bytes) -> bytes:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._run, data)
    
    def _run(self, data: bytes) -> bytes:
        try:
            return self._run_in_scratch(data)
        except OSError as e:
            # not executable, bad interpreter, scratch dir trouble
            raise OptimizerError(f"{self.name} could not be run: {e}") from e
    
    def _run_in_scratch(self, data: bytes) -> bytes:
        if self.work_dir:
            self.work_dir.mkdir(parents=True, exist_ok=True)
        
        with tempfile.TemporaryDirectory(prefix="optimize-", dir=self.work_dir) as scratch:
            input_path = Path(scratch) / "input.glb"
            output_path = Path(scratch) / "output.glb"
            input_path.write_bytes(data)
            
            cmd = self.build_command(input_path, output_path)
            logger.info(f"Running optimizer: {' '.join(cmd)}")
            
            try:
                completed = subprocess.run(
                    cmd,
                    capture_output=True,
                    timeout=self.timeout
                )
            except FileNotFoundError as e:
                raise OptimizerError(f"{cmd[0]} is not installed") from e
            except subprocess.TimeoutExpired as e:
                raise OptimizerError(f"{cmd[0]} timed out after {self.timeout:g}s") from e
            
            if completed.returncode != 0:
                stderr = completed.stderr.decode("utf-8", errors="replace")
                stderr_tail = "\n".join(stderr.strip().splitlines()[-20:])
                raise OptimizerError(f"{cmd[0]} exited with {completed.returncode}: {stderr_tail}")
            
            if not output_path.exists() or output_path.stat().st_size == 0:
                raise OptimizerError(f"{cmd[0]} produced no output")
            
            return output_path.read_bytes()


def build_optimizer(enabled: bool, command: str, timeout: float, work_dir: Optional[Path] = None) -> Optional[Optimizer]:
    if not enabled:
        return None
    if not command.strip():
        return PassThroughOptimizer()
    return CommandOptimizer(command, timeout=timeout, work_dir=work_dir)
