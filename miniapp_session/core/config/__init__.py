from miniapp_session.core.config.manager import ConfigManager
from miniapp_session.core.config.models import HostConfig, LoggingConfig, SessionConfig, TimeoutsConfig
from miniapp_session.core.config.paths import ConfigFsPaths

__all__ = [
    "ConfigManager",
    "ConfigFsPaths",
    "SessionConfig",
    "TimeoutsConfig",
    "HostConfig",
    "LoggingConfig",
]
