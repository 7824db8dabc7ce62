from miniapp_session.core.host.base import HostPlatform, HostResponse
from miniapp_session.core.host.fixture import FixtureHostPlatform
from miniapp_session.core.host.http import AuthenticatedHttpClient

__all__ = ["HostPlatform", "HostResponse", "FixtureHostPlatform", "AuthenticatedHttpClient"]
