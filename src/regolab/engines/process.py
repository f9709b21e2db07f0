"""Shared subprocess plumbing for the regal and opa command-line tools."""

from __future__ import annotations

import asyncio
import logging
import os
import re
import shutil
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

VERSION_TIMEOUT = 5.0


class EngineError(Exception):
    """Base class for failures talking to an external policy tool."""


class ExecutableNotFoundError(EngineError):
    def __init__(self, name: str, candidates: list[str]) -> None:
        self.name = name
        self.candidates = candidates
        env = f"{name.upper()}_PATH"
        super().__init__(f"{name} executable not found. Install {name} or set {env}. Checked: {', '.join(candidates)}")


class LinterError(EngineError):
    pass


class EvaluationError(EngineError):
    pass


@dataclass(frozen=True)
class ProcessResult:
    returncode: int
    stdout: str
    stderr: str


def find_executable(name: str, override: str | None = None) -> str:
    """Resolve *name* from an explicit path, ``/usr/local/bin`` or ``PATH``."""
    candidates = [c for c in (override, f"/usr/local/bin/{name}", name) if c]
    for candidate in candidates:
        if Path(candidate).is_absolute():
            if os.access(candidate, os.X_OK):
                logger.info("Found %s at %s", name, candidate)
                return candidate
            continue
        resolved = shutil.which(candidate)
        if resolved is not None:
            logger.info("Found %s in PATH: %s", name, resolved)
            return resolved
    raise ExecutableNotFoundError(name, candidates)


async def run_process(args: list[str], timeout: float) -> ProcessResult:
    """Run *args* and collect its output; raises ``TimeoutError`` after *timeout* seconds."""
    process = await asyncio.create_subprocess_exec(
        *args,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        process.kill()
        await process.wait()
        raise TimeoutError(f"{Path(args[0]).name} did not finish within {timeout:g}s") from None
    return ProcessResult(
        returncode=process.returncode if process.returncode is not None else -1,
        stdout=stdout.decode(errors="replace"),
        stderr=stderr.decode(errors="replace"),
    )


async def tool_version(executable: str, pattern: str) -> str:
    result = await run_process([executable, "version"], VERSION_TIMEOUT)
    match = re.search(pattern, result.stdout)
    return match.group(1) if match else "unknown"
