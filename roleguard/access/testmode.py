# roleguard/access/testmode.py
"""
Process-wide test-mode switch.

Bypass requires BOTH this flag and a per-call opt-in
(PermissionContext.allow_test_mode); neither alone grants anything.
Enabling the flag with ROLEGUARD_ENV=prod raises ProductionTestModeError.
"""
from __future__ import annotations

import logging
import threading
from typing import Optional

from roleguard.config.settings import Settings, settings as _settings
from roleguard.errors import ProductionTestModeError

log = logging.getLogger(__name__)


class TestModeFlag:
    __test__ = False  # not a pytest class

    def __init__(self, cfg: Optional[Settings] = None):
        self._cfg = cfg or _settings
        self._lock = threading.Lock()
        self._enabled = self._cfg.is_test_mode()
        if bool(self._cfg.TEST_MODE) and self._cfg.is_prod():
            log.error("test_mode_ignored_in_prod", extra={"env": self._cfg.ENV})

    def is_enabled(self) -> bool:
        return self._enabled

    def enable(self) -> None:
        if self._cfg.is_prod():
            raise ProductionTestModeError(
                "test mode must stay OFF in production; unset ROLEGUARD_TEST_MODE"
            )
        with self._lock:
            self._enabled = True
        log.warning("test_mode_enabled", extra={"env": self._cfg.ENV})

    def disable(self) -> None:
        with self._lock:
            self._enabled = False
        log.info("test_mode_disabled")


TEST_MODE = TestModeFlag()


__all__ = ["TestModeFlag", "TEST_MODE"]
