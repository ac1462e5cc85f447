import asyncio
import os
import stat
import time

from camview.integrations.ffmpeg import (
    MediaProbe,
    ToolStatus,
    parse_banner_duration,
    parse_ffprobe_duration,
    run_tool,
    with_deadline,
)
from camview.integrations.images import ensure_error_image

from helpers import _write_video


def _script(tmp_path, name, body):
    path = tmp_path / name
    path.write_text("#!/bin/sh\n" + body + "\n")
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return str(path)


def _is_running(pid):
    # reaped or zombie both count as stopped
    try:
        os.kill(pid, 0)
        with open(f"/proc/{pid}/stat") as fh:
            return fh.read().rsplit(")", 1)[1].split()[0] != "Z"
    except (ProcessLookupError, FileNotFoundError):
        return False


def _probe(cfg, ffmpeg=None, ffprobe=None):
    probe = MediaProbe(cfg)
    probe.ffmpeg_path = ffmpeg
    probe.ffprobe_path = ffprobe
    return probe


def test_parse_helpers():
    assert parse_ffprobe_duration('{"format": {"duration": "330.500000"}}') == 330.5
    assert parse_ffprobe_duration('{"format": {}}') is None
    assert parse_ffprobe_duration("not json") is None
    assert parse_banner_duration("  Duration: 01:02:05.50, start: 0.0") == 3725.5
    assert parse_banner_duration("Duration: N/A") is None


def test_probe_duration_reads_ffprobe_json(cfg, tmp_path):
    ffprobe = _script(tmp_path, "ffprobe", "echo '{\"format\": {\"duration\": \"330.5\"}}'")
    video = _write_video(cfg, "abc123", "2024051114", "05M30S_1715774730.mp4")

    result = asyncio.run(_probe(cfg, ffprobe=ffprobe).probe_duration(video))

    assert result.ok
    assert result.value == "05:30"


def test_probe_duration_falls_back_to_ffmpeg_banner(cfg, tmp_path):
    ffmpeg = _script(
        tmp_path,
        "ffmpeg",
        "echo 'Input #0, mov,mp4' >&2\n"
        "echo '  Duration: 00:01:05.20, start: 0.000000, bitrate: 512 kb/s' >&2\n"
        "echo 'At least one output file must be specified' >&2\n"
        "exit 1",
    )
    video = _write_video(cfg, "abc123", "2024051114", "00M00S_1715774400.mp4")

    result = asyncio.run(_probe(cfg, ffmpeg=ffmpeg).probe_duration(video))

    assert result.ok
    assert result.value == "01:05"


def test_probe_duration_reports_tool_failure(cfg, tmp_path):
    ffprobe = _script(tmp_path, "ffprobe", "echo 'moov atom not found' >&2\nexit 1")
    video = _write_video(cfg, "abc123", "2024051114", "broken.mp4")

    result = asyncio.run(_probe(cfg, ffprobe=ffprobe).probe_duration(video))

    assert result.status is ToolStatus.FAILED
    assert result.reason == "moov atom not found"


def test_probe_duration_without_tools_fails(cfg):
    video = _write_video(cfg, "abc123", "2024051114", "00M00S_1.mp4")
    result = asyncio.run(_probe(cfg).probe_duration(video))
    assert result.status is ToolStatus.FAILED


def test_hung_probe_times_out_and_is_killed(cfg, tmp_path):
    pid_file = tmp_path / "pid"
    ffprobe = _script(tmp_path, "ffprobe", f"echo $$ > {pid_file}\nexec sleep 30")
    video = _write_video(cfg, "abc123", "2024051114", "00M00S_1.mp4")
    probe = _probe(cfg, ffprobe=ffprobe)
    probe.duration_timeout = 0.5

    started = time.monotonic()
    result = asyncio.run(probe.probe_duration(video))

    assert result.status is ToolStatus.TIMED_OUT
    assert time.monotonic() - started < 5
    pid = int(pid_file.read_text())
    deadline = time.monotonic() + 2
    while _is_running(pid) and time.monotonic() < deadline:
        time.sleep(0.05)
    assert not _is_running(pid)


def test_run_tool_reports_missing_executable(tmp_path):
    result = asyncio.run(run_tool([str(tmp_path / "missing-tool"), "-version"]))
    assert result.status is ToolStatus.FAILED
    assert "cannot start" in result.reason


def test_with_deadline_converts_timeout():
    async def slow():
        await asyncio.sleep(5)

    result = asyncio.run(with_deadline(slow(), 0.05))
    assert result.status is ToolStatus.TIMED_OUT
    assert result.reason == "timed out after 0.05s"


def test_generate_thumbnail_missing_source_spawns_nothing(cfg, tmp_path):
    calls = tmp_path / "calls"
    ffmpeg = _script(tmp_path, "ffmpeg", f"echo called >> {calls}")
    probe = _probe(cfg, ffmpeg=ffmpeg)

    result = asyncio.run(probe.generate_thumbnail(tmp_path / "gone.mp4", tmp_path / "out.jpg"))

    assert result.status is ToolStatus.FAILED
    assert not calls.exists()


def test_generate_thumbnail_writes_frame(cfg, tmp_path):
    # the last argument is the output path
    ffmpeg = _script(
        tmp_path,
        "ffmpeg",
        'for last in "$@"; do :; done\n'
        'case "$*" in *-frames:v*) printf jpeg > "$last" ;; *) echo "  Duration: 00:01:40.00," >&2; exit 1 ;; esac',
    )
    video = _write_video(cfg, "abc123", "2024051114", "00M00S_1.mp4")
    dest = tmp_path / "out.jpg"

    result = asyncio.run(_probe(cfg, ffmpeg=ffmpeg).generate_thumbnail(video, dest))

    assert result.ok
    assert dest.read_bytes() == b"jpeg"


def test_generate_thumbnail_fails_when_no_image_written(cfg, tmp_path):
    ffmpeg = _script(tmp_path, "ffmpeg", "exit 0")
    video = _write_video(cfg, "abc123", "2024051114", "00M00S_1.mp4")

    result = asyncio.run(_probe(cfg, ffmpeg=ffmpeg).generate_thumbnail(video, tmp_path / "out.jpg"))

    assert result.status is ToolStatus.FAILED


def test_generate_thumbnail_times_out(cfg, tmp_path):
    ffmpeg = _script(tmp_path, "ffmpeg", "exec sleep 30")
    video = _write_video(cfg, "abc123", "2024051114", "00M00S_1.mp4")
    probe = _probe(cfg, ffmpeg=ffmpeg)
    probe.thumbnail_timeout = 0.5

    result = asyncio.run(probe.generate_thumbnail(video, tmp_path / "out.jpg"))

    assert result.status is ToolStatus.TIMED_OUT


def test_error_image_is_rendered_once(tmp_path):
    from PIL import Image

    out = tmp_path / "assets" / "error_thumbnail.jpg"
    ensure_error_image(out, 320, 180)

    with Image.open(out) as img:
        assert img.size == (320, 180)
        assert img.format == "JPEG"

    out.write_bytes(b"custom")
    ensure_error_image(out)
    assert out.read_bytes() == b"custom"
