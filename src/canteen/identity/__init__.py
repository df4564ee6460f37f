"""Identity resolver factory.

Provides get_resolver() / set_resolver() so tests and deployments can swap
the way callers are authenticated.
"""

from canteen.identity.jwt_resolver import JwtIdentityResolver
from canteen.identity.port import Caller, IdentityResolver, Role

_current_resolver: IdentityResolver | None = None


def get_resolver() -> IdentityResolver:
    """Return the active identity resolver. Defaults to JwtIdentityResolver."""
    global _current_resolver
    if _current_resolver is None:
        _current_resolver = JwtIdentityResolver()
    return _current_resolver


def set_resolver(resolver: IdentityResolver) -> None:
    global _current_resolver
    _current_resolver = resolver


def reset_resolver() -> None:
    global _current_resolver
    _current_resolver = None


__all__ = ["Caller", "IdentityResolver", "Role", "get_resolver", "set_resolver", "reset_resolver"]
