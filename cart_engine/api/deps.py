# cart_engine/api/deps.py
from typing import Optional

from fastapi import Depends, Header, HTTPException, Response, status

from cart_engine.domain.identity import GuestOwner, ResolvedIdentity, UserOwner, resolve_identity
from cart_engine.services.token_service import TokenService

GUEST_TOKEN_HEADER = "X-Guest-Token"


def get_token_service() -> TokenService:
    return TokenService()


def get_current_user_id(
    authorization: Optional[str] = Header(None),
    tokens: TokenService = Depends(get_token_service),
) -> Optional[int]:
    """None when no credentials were sent, 401 when they were sent but are invalid."""
    if not authorization:
        return None

    scheme, _, param = authorization.partition(" ")
    if scheme.lower() != "bearer" or not param:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id = tokens.read_user_id(param)
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user_id


def require_user(user_id: Optional[int] = Depends(get_current_user_id)) -> UserOwner:
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return UserOwner(user_id)


def get_identity(
    response: Response,
    user_id: Optional[int] = Depends(get_current_user_id),
    x_guest_token: Optional[str] = Header(None),
    tokens: TokenService = Depends(get_token_service),
) -> ResolvedIdentity:
    identity = resolve_identity(user_id, x_guest_token, tokens)

    if identity.issue_guest_token and isinstance(identity.owner, GuestOwner):
        response.headers[GUEST_TOKEN_HEADER] = tokens.mint_guest_token(identity.owner.guest_id)

    return identity
