# /camview/utils/misc.py
import re
import uuid
from time import time_ns

from camview.config import DateFormat
from camview.models.video import DateParts

_START_TIME_RE = re.compile(r"^(\d+)[Mm](\d+)[Ss]$")


def now_ms() -> int:
    return int(time_ns() // 1_000_000)

def new_id() -> str:
    return str(uuid.uuid4())

def format_duration(seconds: float) -> str:
    """
    Format seconds as zero-padded MM:SS. Minutes are not rolled over into hours,
    so a 75 minute recording reads 75:00.
    """
    total = max(int(seconds), 0)
    minutes, secs = divmod(total, 60)
    return f"{minutes:02d}:{secs:02d}"

def parse_date_string(date_str: str, fmt: DateFormat = DateFormat()) -> DateParts:
    """Slice a date directory name into its parts. No validation is done on the digits."""
    def _part(start: int, length: int) -> str:
        return date_str[start:start + length]

    return DateParts(
        year=_part(fmt.year_start, fmt.year_length),
        month=_part(fmt.month_start, fmt.month_length),
        day=_part(fmt.day_start, fmt.day_length),
        hour=_part(fmt.hour_start, fmt.hour_length),
    )

def parse_start_time(token: str) -> str:
    # 05M30S -> 05:30
    match = _START_TIME_RE.match(token)
    if match:
        return f"{match.group(1)}:{match.group(2)}"
    return token.replace("M", ":", 1).replace("S", "", 1)

def parse_timestamp(token: str) -> int:
    try:
        return int(token)
    except ValueError:
        return 0
