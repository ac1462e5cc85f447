from __future__ import annotations
import asyncio
import contextlib
import json
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Awaitable, Dict, Optional, Sequence

from camview.config import APIConfig, logger
from camview.utils.misc import format_duration

_BANNER_DURATION_RE = re.compile(r"Duration:\s*(\d+):(\d+):(\d+(?:\.\d+)?)")


class ToolStatus(str, Enum):
    OK = "ok"
    TIMED_OUT = "timed_out"
    FAILED = "failed"


@dataclass(frozen=True)
class ToolResult:
    status: ToolStatus
    value: Any = None
    reason: str = ""

    @property
    def ok(self) -> bool:
        return self.status is ToolStatus.OK

    @classmethod
    def success(cls, value: Any = None) -> "ToolResult":
        return cls(ToolStatus.OK, value)

    @classmethod
    def failed(cls, reason: str) -> "ToolResult":
        return cls(ToolStatus.FAILED, reason=reason)

    @classmethod
    def timed_out(cls, timeout: float) -> "ToolResult":
        return cls(ToolStatus.TIMED_OUT, reason=f"timed out after {timeout:g}s")


# ---------- helpers ----------
async def run_tool(args: Sequence[str]) -> ToolResult:
    """
    Run an external command and collect its output. Cancelling the awaiting task
    kills the child process. A non-zero exit status is reported as FAILED with
    stdout and stderr attached as the value.
    """
    try:
        proc = await asyncio.create_subprocess_exec(
            *args,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as exc:
        return ToolResult.failed(f"cannot start {args[0]}: {exc}")

    try:
        stdout, stderr = await proc.communicate()
    except asyncio.CancelledError:
        if proc.returncode is None:
            with contextlib.suppress(ProcessLookupError):
                proc.kill()
        raise

    output = (stdout.decode(errors="replace"), stderr.decode(errors="replace"))
    if proc.returncode != 0:
        tail = output[1].strip().splitlines()[-1:] or [f"exit status {proc.returncode}"]
        return ToolResult(ToolStatus.FAILED, value=output, reason=tail[0])
    return ToolResult.success(output)

async def with_deadline(work: Awaitable[ToolResult], timeout: float) -> ToolResult:
    """Await work, turning an expired deadline into a TIMED_OUT result."""
    try:
        return await asyncio.wait_for(work, timeout=timeout)
    except asyncio.TimeoutError:
        return ToolResult.timed_out(timeout)

def parse_ffprobe_duration(stdout: str) -> Optional[float]:
    try:
        payload: Dict[str, Any] = json.loads(stdout or "{}")
        return float(payload["format"]["duration"])
    except (ValueError, KeyError, TypeError):
        return None

def parse_banner_duration(stderr: str) -> Optional[float]:
    match = _BANNER_DURATION_RE.search(stderr or "")
    if not match:
        return None
    hours, minutes, seconds = match.groups()
    return int(hours) * 3600 + int(minutes) * 60 + float(seconds)


# ---------- API ----------
class MediaProbe:
    """Duration probing and frame extraction through ffprobe/ffmpeg subprocesses."""

    def __init__(self, cfg: APIConfig) -> None:
        self.ffmpeg_path: Optional[str] = cfg.ffmpeg_path
        self.ffprobe_path: Optional[str] = cfg.ffprobe_path
        self.duration_timeout: float = cfg.DURATION_TIMEOUT_S
        self.thumbnail_timeout: float = cfg.THUMBNAIL_TIMEOUT_S
        self.width: int = cfg.THUMBNAIL_WIDTH
        self.height: int = cfg.THUMBNAIL_HEIGHT
        self.seek_ratio: float = cfg.THUMBNAIL_SEEK_RATIO

    async def _probe_seconds(self, file_path: Path) -> ToolResult:
        if self.ffprobe_path:
            result = await run_tool([
                self.ffprobe_path,
                "-v", "error",
                "-show_entries", "format=duration",
                "-of", "json",
                str(file_path),
            ])
            if not result.ok:
                return result
            seconds = parse_ffprobe_duration(result.value[0])
        elif self.ffmpeg_path:
            # Without ffprobe, read the banner ffmpeg prints for its input.
            # ffmpeg exits non-zero here because no output is given.
            result = await run_tool([self.ffmpeg_path, "-hide_banner", "-i", str(file_path)])
            stderr = result.value[1] if result.value else ""
            seconds = parse_banner_duration(stderr)
        else:
            return ToolResult.failed("neither ffprobe nor ffmpeg is available")

        if seconds is None:
            return ToolResult.failed(f"no duration reported for {file_path.name}")
        return ToolResult.success(seconds)

    async def probe_duration(self, file_path: Path) -> ToolResult:
        """Resolve to the duration as MM:SS, or a TIMED_OUT/FAILED result."""
        logger.debug(f"Probing duration: {file_path}")
        result = await with_deadline(self._probe_seconds(file_path), self.duration_timeout)
        if not result.ok:
            return result
        return ToolResult.success(format_duration(result.value))

    async def _extract_frame(self, source_path: Path, dest_path: Path) -> ToolResult:
        if not self.ffmpeg_path:
            return ToolResult.failed("ffmpeg is not available")

        probed = await self._probe_seconds(source_path)
        seek = probed.value * self.seek_ratio if probed.ok else 0.0

        result = await run_tool([
            self.ffmpeg_path,
            "-y",
            "-loglevel", "error",
            "-ss", f"{seek:.3f}",
            "-i", str(source_path),
            "-frames:v", "1",
            "-vf", f"scale={self.width}:{self.height}",
            str(dest_path),
        ])
        if not result.ok:
            return result
        if not dest_path.exists() or dest_path.stat().st_size == 0:
            return ToolResult.failed(f"ffmpeg wrote no image to {dest_path}")
        return ToolResult.success(dest_path)

    async def generate_thumbnail(self, source_path: Path, dest_path: Path) -> ToolResult:
        """
        Extract one frame at seek_ratio of the duration (skipping black lead-in frames),
        scaled to width x height, and write it to dest_path.
        """
        if not source_path.exists():
            return ToolResult.failed(f"source video does not exist: {source_path}")
        logger.debug(f"Generating thumbnail: {source_path} -> {dest_path}")
        return await with_deadline(self._extract_frame(source_path, dest_path), self.thumbnail_timeout)


def check_media_tools(cfg: APIConfig) -> Dict[str, bool]:
    """Startup advisory: report which media tools can be found. Never fatal."""
    ffmpeg_path = cfg.ffmpeg_path
    ffprobe_path = cfg.ffprobe_path
    if ffmpeg_path:
        logger.info(f"ffmpeg found at {ffmpeg_path}")
    else:
        logger.error("ffmpeg is not installed or not on PATH, thumbnails will use the placeholder image")
    if ffprobe_path:
        logger.info(f"ffprobe found at {ffprobe_path}")
    else:
        logger.warning("ffprobe not found, durations will be read from the ffmpeg banner")
    return {"ffmpeg": bool(ffmpeg_path), "ffprobe": bool(ffprobe_path)}
