from __future__ import annotations

import os
import re
from datetime import timedelta, timezone, tzinfo
from zoneinfo import ZoneInfo

_OFFSET_RE = re.compile(r"^([+-])(\d{2}):?(\d{2})$")


def resolve_tz(name: str | None) -> tzinfo | None:
    """Resolve a timezone setting into a tzinfo.

    ``None``/``""``/``"local"`` resolve to ``None``, meaning the process's own
    local zone. ``"UTC"`` and fixed offsets such as ``"+02:00"`` resolve to
    ``datetime.timezone``; anything else is treated as an IANA name.
    """
    if name is None:
        return None
    s = name.strip()
    if not s or s.lower() in {"local", "system"}:
        return None
    if s.lower() in {"utc", "z", "gmt"}:
        return timezone.utc
    m = _OFFSET_RE.match(s)
    if m:
        sign = -1 if m.group(1) == "-" else 1
        offset = timedelta(hours=int(m.group(2)), minutes=int(m.group(3)))
        return timezone(sign * offset)
    return ZoneInfo(s)


TIMEZONE_NAME = os.getenv("GRINDFLOW_TIMEZONE", "local")
LOCAL_TZ = resolve_tz(TIMEZONE_NAME)
LOG_LEVEL = os.getenv("GRINDFLOW_LOG_LEVEL", "INFO").upper()
SEED_DATA = os.getenv("GRINDFLOW_SEED_DATA", "0") == "1"

# "warn" records conflicts on the saved task, "reject" refuses the save.
CONFLICT_POLICY = os.getenv("GRINDFLOW_CONFLICT_POLICY", "warn").lower()
if CONFLICT_POLICY not in {"warn", "reject"}:
    CONFLICT_POLICY = "warn"
