"""
Notification Sink — platform-aware desktop notifications and transition tones.

Everything here is fire-and-forget: a missing binary or a failing command is
reported as False, never raised, so the timer is never blocked by the desktop.
"""

from __future__ import annotations

import subprocess
import sys
from enum import Enum
from typing import List, Protocol, Tuple


class ToneKind(str, Enum):
    STUDY = "study"
    BREAK = "break"
    COMPLETE = "complete"


# (frequency Hz, duration ms) sequences per tone
TONES: dict[ToneKind, List[Tuple[int, int]]] = {
    ToneKind.STUDY:    [(440, 200), (554, 200)],
    ToneKind.BREAK:    [(523, 200), (659, 400)],
    ToneKind.COMPLETE: [(523, 200), (659, 200), (784, 400)],
}

# freedesktop sound theme ids used on Linux
_LINUX_SOUNDS = {
    ToneKind.STUDY: "message-new-instant",
    ToneKind.BREAK: "bell",
    ToneKind.COMPLETE: "complete",
}


class NotificationSink(Protocol):
    def notify(self, title: str, body: str, require_interaction: bool = False) -> bool: ...

    def play_tone(self, kind: ToneKind) -> bool: ...


class NullNotifier:
    """Sink that drops everything; used headless and in tests."""

    def notify(self, title: str, body: str, require_interaction: bool = False) -> bool:
        return False

    def play_tone(self, kind: ToneKind) -> bool:
        return False


class DesktopNotifier:

    def notify(self, title: str, body: str, require_interaction: bool = False) -> bool:
        if sys.platform == "win32":
            return self._windows_notify(title, body)
        if sys.platform == "darwin":
            return self._macos_notify(title, body)
        return self._linux_notify(title, body, require_interaction)

    def play_tone(self, kind: ToneKind) -> bool:
        if sys.platform == "win32":
            return self._windows_tone(kind)
        if sys.platform == "darwin":
            return self._macos_tone(kind)
        return self._linux_tone(kind)

    # ------------------------------------------------------------------
    # Platform implementations
    # ------------------------------------------------------------------

    def _windows_notify(self, title: str, body: str) -> bool:
        script = (
            "Add-Type -AssemblyName System.Windows.Forms; "
            "$n = New-Object System.Windows.Forms.NotifyIcon; "
            "$n.Icon = [System.Drawing.SystemIcons]::Information; "
            "$n.Visible = $true; "
            f"$n.ShowBalloonTip(5000, {_ps_quote(title)}, {_ps_quote(body)}, 'Info')"
        )
        return _run(["powershell", "-Command", script])

    def _macos_notify(self, title: str, body: str) -> bool:
        script = f"display notification {_as_quote(body)} with title {_as_quote(title)}"
        return _run(["osascript", "-e", script])

    def _linux_notify(self, title: str, body: str, require_interaction: bool) -> bool:
        urgency = "critical" if require_interaction else "normal"
        return _run(["notify-send", "-u", urgency, title, body])

    def _windows_tone(self, kind: ToneKind) -> bool:
        beeps = "; ".join(f"[console]::beep({f},{d})" for f, d in TONES[kind])
        return _run(["powershell", "-Command", beeps])

    def _macos_tone(self, kind: ToneKind) -> bool:
        sound = "Glass" if kind == ToneKind.COMPLETE else "Ping"
        return _run(["afplay", f"/System/Library/Sounds/{sound}.aiff"])

    def _linux_tone(self, kind: ToneKind) -> bool:
        return _run(["canberra-gtk-play", "--id", _LINUX_SOUNDS[kind]])


def _run(cmd: List[str]) -> bool:
    # Popen, not run: the tick must not wait on the desktop
    try:
        subprocess.Popen(cmd, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL)
        return True
    except Exception:
        return False


def _ps_quote(text: str) -> str:
    return "'" + text.replace("'", "''") + "'"


def _as_quote(text: str) -> str:
    return '"' + text.replace("\\", "\\\\").replace('"', '\\"') + '"'
