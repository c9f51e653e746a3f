from __future__ import annotations

import os
import tempfile
import time
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import Union

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_ONE_MS = timedelta(milliseconds=1)

DueDateInput = Union[date, datetime, str, int]


# PUBLIC_INTERFACE
def now_ms() -> int:
    """Current wall-clock time as integer epoch milliseconds."""
    return time.time_ns() // 1_000_000


# PUBLIC_INTERFACE
def ms_to_iso(value: int) -> str:
    """
    Format epoch milliseconds as an ISO-8601 UTC string.

    Output always carries millisecond precision and a 'Z' suffix, e.g.
    '2025-01-31T13:45:00.000Z'. The conversion is exact for integers.
    """
    dt = _EPOCH + timedelta(milliseconds=value)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


# PUBLIC_INTERFACE
def iso_to_ms(value: str) -> int:
    """
    Parse an ISO-8601 datetime string into epoch milliseconds.

    - A trailing 'Z' is read as UTC.
    - Naive datetimes are taken as UTC.
    - Sub-millisecond digits are truncated.

    Raises:
        ValueError: if the string is not an ISO-8601 datetime.
    """
    if not isinstance(value, str):
        raise ValueError(f"expected an ISO-8601 string, got {type(value).__name__}")
    s = value.strip()
    if s.endswith("Z") or s.endswith("z"):
        s = s[:-1] + "+00:00"
    dt = datetime.fromisoformat(s)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return (dt - _EPOCH) // _ONE_MS


# PUBLIC_INTERFACE
def parse_due_date(value: DueDateInput) -> int:
    """
    Normalize user supplied due date input into epoch milliseconds.

    - int: taken as epoch milliseconds already.
    - datetime: naive values are taken as UTC.
    - date: promoted to midnight UTC.
    - str: ISO8601 date or datetime; a bare date means midnight UTC.

    Raises:
        ValueError: if the value cannot be interpreted.
    """
    if isinstance(value, bool):
        raise ValueError("Invalid type for due_date; expected date, datetime, or ISO8601 string.")

    if isinstance(value, int):
        return value

    if isinstance(value, datetime):
        dt = value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)
        return (dt - _EPOCH) // _ONE_MS

    if isinstance(value, date):
        return parse_due_date(datetime(value.year, value.month, value.day, tzinfo=timezone.utc))

    if isinstance(value, str):
        s = value.strip()
        try:
            return iso_to_ms(s)
        except ValueError:
            try:
                d = date.fromisoformat(s)
            except ValueError as e:
                raise ValueError(
                    "Invalid due_date format. Use ISO8601 date or datetime string "
                    "(e.g., '2025-01-31' or '2025-01-31T13:45:00')."
                ) from e
            return parse_due_date(d)

    raise ValueError("Invalid type for due_date; expected date, datetime, or ISO8601 string.")


# PUBLIC_INTERFACE
def atomic_write_text(path: Union[str, Path], content: str) -> None:
    """
    Write text so that readers never observe a partially written file.

    The content goes to a temporary file in the destination directory which
    then replaces the target with os.replace. Missing parent directories are
    created.
    """
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{target.name}.", suffix=".tmp", dir=str(target.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as f:
            f.write(content)
        os.replace(tmp_name, target)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise
