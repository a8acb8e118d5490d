"""
Switch guard: one synchronization operation at a time.

This is a flag, not a queue. A request that arrives while another operation
is running is dropped; the running operation's own completion updates the UI.
"""

from __future__ import annotations

import logging
from typing import Optional

logger = logging.getLogger(__name__)


class SwitchGuard:
    def __init__(self) -> None:
        self._holder: Optional[str] = None

    @property
    def busy(self) -> bool:
        return self._holder is not None

    @property
    def holder(self) -> Optional[str]:
        return self._holder

    def try_acquire(self, operation: str) -> bool:
        if self._holder is not None:
            logger.info("Ignoring %s: %s already in progress", operation, self._holder)
            return False
        self._holder = operation
        return True

    def release(self) -> None:
        self._holder = None
