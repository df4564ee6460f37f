"""Bearer-token identity resolver backed by signed JWTs."""

from datetime import UTC, datetime, timedelta

import structlog
from jose import JWTError, jwt

from canteen.config import get_settings
from canteen.errors import Unauthenticated
from canteen.identity.port import Caller, IdentityResolver, Role

logger = structlog.get_logger(__name__)


class JwtIdentityResolver(IdentityResolver):
    def __init__(self, secret: str | None = None, algorithm: str | None = None, expires_minutes: int | None = None):
        settings = get_settings()
        self.secret = secret or settings.jwt_secret
        self.algorithm = algorithm or settings.jwt_algorithm
        self.expires_minutes = expires_minutes or settings.jwt_expires_minutes

    def issue(self, caller: Caller) -> str:
        now = datetime.now(UTC)
        payload = {
            "sub": str(caller.actor_id),
            "role": caller.role.value,
            "iat": now,
            "exp": now + timedelta(minutes=self.expires_minutes),
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def resolve(self, credentials: str | None) -> Caller:
        if not credentials:
            raise Unauthenticated("Missing authentication token")

        try:
            claims = jwt.decode(credentials, self.secret, algorithms=[self.algorithm])
        except JWTError as exc:
            logger.info("Rejected authentication token", reason=str(exc))
            raise Unauthenticated("Invalid authentication token") from None

        actor_id = claims.get("sub")
        try:
            role = Role(claims.get("role"))
        except ValueError:
            raise Unauthenticated("Authentication token carries an unknown role") from None

        if not actor_id:
            raise Unauthenticated("Authentication token has no subject")

        return Caller(actor_id=str(actor_id), role=role)
