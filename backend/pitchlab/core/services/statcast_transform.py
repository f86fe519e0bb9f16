from __future__ import annotations
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Tuple

REFERENCE_TABLE = "mlb_pitches"
REFERENCE_IDENTITY = ("game_pk", "at_bat_number", "pitch_number")


def _pick(obj: Dict[str, Any], keys: List[str]) -> str:
    for k in keys:
        v = obj.get(k)
        if isinstance(v, str) and v.strip():
            return v.strip()
    return ""


def _to_float(value: Any) -> Optional[float]:
    try:
        return float(value) if value not in (None, "", "null") else None
    except (TypeError, ValueError):
        return None


def _to_int(value: Any) -> Optional[int]:
    f = _to_float(value)
    return int(round(f)) if f is not None else None


def _to_date(value: Any) -> Optional[date]:
    try:
        return date.fromisoformat(str(value).strip()[:10]) if value else None
    except ValueError:
        return None


def map_statcast_row(obj: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Map one Savant CSV row to the reference table shape, or None if unusable."""
    name = _pick(obj, ["player_name", "pitcher_name"])
    pitch_type = _pick(obj, ["pitch_type"])
    identity = tuple(_to_int(obj.get(k)) for k in REFERENCE_IDENTITY)
    if not (name and pitch_type) or any(v is None for v in identity):
        return None

    game_pk, at_bat_number, pitch_number = identity
    return {
        "pitcher_name": name[:100],
        "pitch_type": pitch_type[:10],
        "release_speed": _to_float(obj.get("release_speed")),
        "release_spin_rate": _to_int(obj.get("release_spin_rate")),
        "pfx_x": _to_float(obj.get("pfx_x")),
        "pfx_z": _to_float(obj.get("pfx_z")),
        "game_date": _to_date(obj.get("game_date")),
        "p_throws": _pick(obj, ["p_throws"])[:1] or None,
        "game_pk": game_pk,
        "at_bat_number": at_bat_number,
        "pitch_number": pitch_number,
    }


def transform_rows(raw: Iterable[Dict[str, Any]]) -> Tuple[List[Dict[str, Any]], int]:
    """Returns (mapped rows, count of rows dropped for missing essentials)."""
    rows: List[Dict[str, Any]] = []
    dropped = 0
    for obj in raw:
        mapped = map_statcast_row(obj)
        if mapped is None:
            dropped += 1
            continue
        rows.append(mapped)
    return rows, dropped
