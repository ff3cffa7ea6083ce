"""
Dismissable user alerts.

Only one alert is visible at a time: showing a new one replaces the old.
An alert hides itself after `duration` seconds or when dismissed.
"""

import time
from dataclasses import dataclass
from typing import Callable, List, Optional

ALERT_TYPES = ("success", "error")
DEFAULT_DURATION = 7.0


@dataclass
class Alert:
    type: str
    message: str
    shown_at: float
    duration: float = DEFAULT_DURATION
    dismissed: bool = False

    def expired(self, now: float) -> bool:
        return now >= self.shown_at + self.duration


class AlertBoard:
    """Holds the visible alert and the history of everything shown."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._current: Optional[Alert] = None
        self.history: List[Alert] = []

    def show(self, alert_type: str, message: str, duration: float = DEFAULT_DURATION) -> Alert:
        if alert_type not in ALERT_TYPES:
            raise ValueError(f"Unknown alert type '{alert_type}'. Must be one of: {ALERT_TYPES}")
        self.dismiss()
        alert = Alert(type=alert_type, message=message, shown_at=self._clock(), duration=duration)
        self._current = alert
        self.history.append(alert)
        return alert

    def dismiss(self) -> None:
        if self._current is not None:
            self._current.dismissed = True
            self._current = None

    @property
    def current(self) -> Optional[Alert]:
        """The visible alert, or None once dismissed or timed out."""
        if self._current is not None and self._current.expired(self._clock()):
            self.dismiss()
        return self._current
