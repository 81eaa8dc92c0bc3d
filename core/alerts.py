from __future__ import annotations

import logging
import time
from typing import Callable, Optional, Union

from core.models import Alert, Severity

logger = logging.getLogger(__name__)


class AlertChannel:
    """Single-slot notification. A new alert replaces the current one; alerts expire after ``dismiss_after`` seconds."""

    def __init__(self, dismiss_after: float = 5.0, clock: Callable[[], float] = time.monotonic):
        self.dismiss_after = dismiss_after
        self._clock = clock
        self._alert: Optional[Alert] = None

    def show(self, severity: Union[Severity, str], message: str) -> Alert:
        alert = Alert(severity=Severity(severity), message=message, shown_at=self._clock())
        self._alert = alert
        logger.debug("alert %s: %s", alert.severity.value, message)
        return alert

    def current(self) -> Optional[Alert]:
        if self._alert is None:
            return None
        if self._clock() - self._alert.shown_at >= self.dismiss_after:
            self._alert = None
        return self._alert

    def dismiss(self) -> None:
        self._alert = None
