"""
Timer state aggregate and its persisted snapshot.

The snapshot is a JSON object mirroring TimerState field-for-field, stored in a
small JSON key-value file under TIMER_STORAGE_KEY. decode_state() raises
ValueError on anything malformed; callers fall back to an idle timer.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, fields
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

from .segments import SegmentType

logger = logging.getLogger(__name__)

TIMER_STORAGE_KEY = "study-timer-state"


class CompletionType(str, Enum):
    COMPLETED = "completed"
    MANUAL_STOP = "manual_stop"


@dataclass
class PendingTransition:
    from_type: SegmentType
    to_type: SegmentType
    transition_time: float          # epoch ms when the boundary was detected


@dataclass
class CompletionData:
    record_id: str
    method: str
    duration: int                   # minutes actually consumed, >= 1
    break_duration: Optional[int]
    cycles: int
    total_duration: float
    completion_type: CompletionType


@dataclass
class TimerState:
    is_active: bool = False
    is_paused: bool = False
    is_break: bool = False
    method: Optional[str] = None
    study_duration: int = 0
    break_duration: Optional[int] = None
    cycles: int = 1
    total_duration: float = 0
    time_left: int = 0              # seconds left in the whole session
    start_time: Optional[float] = None
    current_segment_type: Optional[SegmentType] = None
    pending_transition: Optional[PendingTransition] = None
    completion_data: Optional[CompletionData] = None
    last_transition_minute: Optional[float] = None

    def is_running(self) -> bool:
        return self.is_active and not self.is_paused and self.time_left > 0

    def is_idle(self) -> bool:
        return self == TimerState(completion_data=self.completion_data)


# ---------------------------------------------------------------------------
# Snapshot codec
# ---------------------------------------------------------------------------

def encode_state(state: TimerState) -> Dict[str, Any]:
    data = asdict(state)
    # asdict keeps Enum members; flatten them so json.dumps stays lossless
    return json.loads(json.dumps(data, default=_enum_value))


def decode_state(data: Any) -> TimerState:
    if not isinstance(data, dict):
        raise ValueError("timer snapshot must be a JSON object")

    known = {f.name for f in fields(TimerState)}
    missing = {"is_active", "is_paused", "time_left"} - data.keys()
    if missing:
        raise ValueError(f"timer snapshot missing fields: {sorted(missing)}")

    raw = {k: v for k, v in data.items() if k in known}
    for flag in ("is_active", "is_paused", "is_break"):
        if flag in raw and not isinstance(raw[flag], bool):
            raise ValueError(f"{flag} must be a boolean")
    _check_ints(raw, ("time_left", "study_duration", "cycles"))
    _check_ints(raw, ("break_duration",), optional=True)
    _check_numbers(raw, ("total_duration",))
    _check_numbers(raw, ("start_time", "last_transition_minute"), optional=True)
    if raw.get("method") is not None and not isinstance(raw["method"], str):
        raise ValueError("method must be a string")

    try:
        state = TimerState(**raw)
        if state.current_segment_type is not None:
            state.current_segment_type = SegmentType(state.current_segment_type)
        if raw.get("pending_transition") is not None:
            p = raw["pending_transition"]
            state.pending_transition = PendingTransition(
                from_type=SegmentType(p["from_type"]),
                to_type=SegmentType(p["to_type"]),
                transition_time=float(p["transition_time"]),
            )
        if raw.get("completion_data") is not None:
            c = dict(raw["completion_data"])
            c["completion_type"] = CompletionType(c["completion_type"])
            _check_ints(c, ("duration", "cycles"))
            _check_ints(c, ("break_duration",), optional=True)
            _check_numbers(c, ("total_duration",))
            if not isinstance(c.get("record_id"), str) or not isinstance(c.get("method"), str):
                raise ValueError("completion record needs string record_id and method")
            state.completion_data = CompletionData(**c)
    except (KeyError, TypeError) as exc:
        raise ValueError(f"malformed timer snapshot: {exc}") from exc

    if state.time_left < 0:
        raise ValueError("time_left cannot be negative")
    if state.is_active and state.start_time is None and not state.is_paused:
        raise ValueError("running timer snapshot has no start_time")

    # A pending transition only makes sense on a paused, active timer
    if not state.is_active:
        state.is_paused = False
        state.pending_transition = None
    elif state.pending_transition is not None and not state.is_paused:
        state.pending_transition = None
    return state


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _check_ints(raw: Dict[str, Any], names, optional: bool = False) -> None:
    for name in names:
        if name not in raw or (optional and raw[name] is None):
            continue
        if not _is_int(raw[name]):
            raise ValueError(f"{name} must be an integer")


def _check_numbers(raw: Dict[str, Any], names, optional: bool = False) -> None:
    for name in names:
        if name not in raw or (optional and raw[name] is None):
            continue
        value = raw[name]
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"{name} must be a number")


def _enum_value(obj: Any) -> Any:
    if isinstance(obj, Enum):
        return obj.value
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


# ---------------------------------------------------------------------------
# Durable key-value storage
# ---------------------------------------------------------------------------

class LocalStorage:
    """
    JSON-file key-value store standing in for browser localStorage.

    A missing or corrupt file reads as empty. Writes replace the file via a
    temporary sibling so a crash mid-write leaves the previous contents.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def get_item(self, key: str) -> Optional[Any]:
        return self._read().get(key)

    def set_item(self, key: str, value: Any) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def remove_item(self, key: str) -> None:
        data = self._read()
        if data.pop(key, None) is not None:
            self._write(data)

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text())
        except (OSError, ValueError) as exc:
            logger.warning("Discarding unreadable storage file %s: %s", self.path, exc)
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(data, indent=2))
        tmp.replace(self.path)
