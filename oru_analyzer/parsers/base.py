import re
from datetime import date
from typing import Dict, List, Optional

from oru_analyzer.commons.constants import COMP_SEP, FIELD_SEP

_SEGMENT_SPLIT = re.compile(r"\r\n|\n|\r")
# Prefijo numérico, como lo leería un parseFloat tolerante ("7.7 H" -> 7.7)
_LEADING_DECIMAL = re.compile(r"^\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_LEADING_INT = re.compile(r"^\s*[+-]?\d+")


def _split_fields(seg: str) -> List[str]:
    return seg.split(FIELD_SEP)


def _split_comp(val: str) -> List[str]:
    return val.split(COMP_SEP) if val else []


def _field(fields: List[str], idx: int) -> str:
    return fields[idx] if len(fields) > idx else ""


def _first_comp(val: str) -> str:
    comp = _split_comp(val)
    return comp[0] if comp else ""


def split_segments(text: str) -> List[str]:
    """Divide en segmentos (CR, CRLF o LF) y omite los vacíos."""
    return [s for s in _SEGMENT_SPLIT.split(text or "") if s.strip()]


def group_segments(text: str) -> Dict[str, List[str]]:
    """Group segments by their three-character type tag, keeping message order.

    Unknown tags are kept; callers only look up the ones they need.
    """
    groups: Dict[str, List[str]] = {}
    for seg in split_segments(text):
        groups.setdefault(seg[:3], []).append(seg)
    return groups


def parse_hl7_date(raw: str) -> Optional[date]:
    """``YYYYMMDD[hhmm...]`` -> date, or None if the first 8 chars are not a date."""
    raw = (raw or "").strip()
    if len(raw) < 8 or not raw[:8].isdigit():
        return None
    try:
        return date(int(raw[0:4]), int(raw[4:6]), int(raw[6:8]))
    except ValueError:
        return None


def parse_decimal(raw: str) -> Optional[float]:
    m = _LEADING_DECIMAL.match(raw or "")
    return float(m.group(0)) if m else None


def parse_int(raw: str) -> Optional[int]:
    m = _LEADING_INT.match(raw or "")
    return int(m.group(0)) if m else None
