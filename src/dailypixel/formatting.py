from __future__ import annotations

import re
from datetime import date, datetime
from typing import Optional


_HEX6 = re.compile(r"#?([0-9A-Fa-f]{6})")
_HEX3 = re.compile(r"#?([0-9A-Fa-f]{3})")
_DATE_KEY = re.compile(r"(\d{4})-(\d{2})-(\d{2})")


def normalize_color(value: str) -> str:
    """
    Normalize a hex color into lowercase '#rrggbb':
    - Accepts '#RGB', '#RRGGBB', with or without the leading '#'
    - Any case
    """
    s = (value or "").strip()
    m = _HEX6.fullmatch(s)
    if m:
        return "#" + m.group(1).lower()
    m = _HEX3.fullmatch(s)
    if m:
        return "#" + "".join(ch * 2 for ch in m.group(1).lower())
    raise ValueError(f"invalid color: {value!r}")


def color_to_rgb(color: str) -> tuple[int, int, int]:
    c = normalize_color(color)
    return int(c[1:3], 16), int(c[3:5], 16), int(c[5:7], 16)


def date_key(day: date) -> str:
    """Calendar key for a day: zero-padded 'YYYY-MM-DD'."""
    return f"{day.year:04d}-{day.month:02d}-{day.day:02d}"


def parse_date_key(key: str) -> date:
    m = _DATE_KEY.fullmatch((key or "").strip())
    if not m:
        raise ValueError(f"invalid date key: {key!r} (expected YYYY-MM-DD)")
    y, mo, d = (int(g) for g in m.groups())
    return date(y, mo, d)


def export_filename(now: Optional[datetime] = None) -> str:
    """
    'pixel-art-YYYY-MM-DDTHH-MM-SS.png' (':' and '.' are not filename-safe).
    """
    stamp = (now or datetime.now()).strftime("%Y-%m-%dT%H-%M-%S")
    return f"pixel-art-{stamp}.png"
