from pathlib import Path
from typing import List

from camview.config import APIConfig


def _write_video(cfg: APIConfig, camera_id: str, date: str, name: str, payload: bytes = b"00") -> Path:
    video_path = cfg.VIDEO_BASE_PATH / camera_id / date / name
    video_path.parent.mkdir(parents=True, exist_ok=True)
    video_path.write_bytes(payload)
    return video_path


def _write_videos(cfg: APIConfig, camera_id: str, date: str, count: int) -> List[Path]:
    # 00M00S_1715774400.mp4, 01M00S_1715774460.mp4, ...
    return [
        _write_video(cfg, camera_id, date, f"{i:02d}M00S_{1715774400 + i * 60}.mp4")
        for i in range(count)
    ]


def _drain(subscriber) -> list:
    messages = []
    while subscriber.pending():
        messages.append(subscriber._queue.get_nowait())
    return messages
