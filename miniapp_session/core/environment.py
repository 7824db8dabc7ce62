from __future__ import annotations

import asyncio
from enum import Enum
from typing import Optional

from miniapp_session.core.config.models import TimeoutsConfig
from miniapp_session.core.errors import EnvironmentDetectionFault, HostCallTimeout
from miniapp_session.core.logger import get_logger


class Environment(str, Enum):
    HOST = "host"
    STANDALONE = "standalone"


class EnvironmentDetector:
    """
    Single host runtime check per call, no retries.

    A negative answer means STANDALONE. A raising check is reported as
    EnvironmentDetectionFault so the caller decides how to degrade; an expired
    check is a HostCallTimeout.
    """

    def __init__(self, *, host, timeouts: Optional[TimeoutsConfig] = None, logger=None):
        self.host = host
        self.timeouts = timeouts or TimeoutsConfig()
        self.logger = logger or get_logger()

    async def detect(self) -> Environment:
        if self.host is None:
            return Environment.STANDALONE
        try:
            embedded = await asyncio.wait_for(self.host.is_embedded(), timeout=self.timeouts.environment_seconds)
        except asyncio.TimeoutError as e:
            raise HostCallTimeout(step="environment", timeout_seconds=self.timeouts.environment_seconds) from e
        except Exception as e:  # noqa: BLE001
            self.logger.warning(f"host runtime check failed: {e}")
            raise EnvironmentDetectionFault(error=str(e)) from e
        return Environment.HOST if bool(embedded) else Environment.STANDALONE
