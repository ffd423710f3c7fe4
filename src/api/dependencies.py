import logging
from collections.abc import Iterator

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from src import config
from src.infrastructure.db.models import User, UserRole
from src.infrastructure.db.session import SessionLocal
from src.infrastructure.gateway.chapa import ChapaGateway, PaymentGateway
from src.infrastructure.notifications.notifier import Notifier, OutboxNotifier
from src.infrastructure.repositories.marketplace_repository import MarketplaceRepository
from src.infrastructure.security.tokens import decode_access_token

logger = logging.getLogger(__name__)

_bearer = HTTPBearer(auto_error=False)


def get_db():
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
    db: Session = Depends(get_db),
) -> User:
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authorized, no token",
        )

    claims = decode_access_token(credentials.credentials)
    if not claims or not claims.get("id"):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authorized, token failed",
        )

    user = MarketplaceRepository(db).get_user(claims["id"])
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authorized, user not found",
        )
    if user.is_blocked:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Your account has been blocked",
        )
    return user


def require_role(*roles: UserRole):
    allowed = {role.value for role in roles}

    def _check(user: User = Depends(get_current_user)) -> User:
        if user.role.value not in allowed:
            logger.warning("User %s with role %s denied; needs one of %s", user.id, user.role.value, sorted(allowed))
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Not authorized for this resource",
            )
        return user

    return _check


def get_gateway() -> Iterator[PaymentGateway]:
    secret_key = config.chapa_secret_key()
    if not secret_key:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Payment gateway is not configured",
        )
    gateway = ChapaGateway(
        secret_key=secret_key,
        base_url=config.CHAPA_BASE_URL,
        timeout=config.CHAPA_TIMEOUT_SECONDS,
    )
    try:
        yield gateway
    finally:
        gateway.close()


def get_notifier(db: Session = Depends(get_db)) -> Notifier:
    return OutboxNotifier(db)


async def raw_body(request: Request) -> bytes:
    # Signature verification needs the exact bytes the gateway signed.
    return await request.body()
