from miniapp_session.core.identity.models import BackendProfile, HostIdentity, PlaceReference
from miniapp_session.core.identity.resolver import IdentityResolution, IdentityResolver

__all__ = ["BackendProfile", "HostIdentity", "PlaceReference", "IdentityResolution", "IdentityResolver"]
