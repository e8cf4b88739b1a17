# cart_engine/domain/identity.py
"""
Shopping identity: who owns a cart.

An owner is either an authenticated user or a guest known only by the UUID
carried in a signed guest token. The owner is always passed explicitly into
the services, nothing reads it from request-global state.
"""
import uuid
from dataclasses import dataclass
from typing import Optional, Protocol, Union


@dataclass(frozen=True)
class UserOwner:
    user_id: int

    @property
    def kind(self) -> str:
        return "user"

    def __str__(self) -> str:
        return f"user:{self.user_id}"


@dataclass(frozen=True)
class GuestOwner:
    guest_id: uuid.UUID

    @property
    def kind(self) -> str:
        return "guest"

    @classmethod
    def new(cls) -> "GuestOwner":
        return cls(uuid.uuid4())

    @classmethod
    def parse(cls, value: str) -> "GuestOwner":
        return cls(uuid.UUID(str(value)))

    def __str__(self) -> str:
        return f"guest:{self.guest_id}"


Owner = Union[UserOwner, GuestOwner]


class GuestTokenReader(Protocol):
    def read_guest_id(self, token: str) -> Optional[uuid.UUID]:
        ...


@dataclass(frozen=True)
class ResolvedIdentity:
    owner: Owner
    # True when the caller has to mint a token for a freshly created guest id
    issue_guest_token: bool = False


def resolve_identity(
    user_id: Optional[int],
    guest_token: Optional[str],
    tokens: GuestTokenReader,
) -> ResolvedIdentity:
    """
    Authenticated user always wins. Otherwise the guest token is used when it
    is valid; a missing, invalid or expired token gives a brand new guest id.
    """
    if user_id is not None:
        return ResolvedIdentity(UserOwner(user_id))

    if guest_token:
        guest_id = tokens.read_guest_id(guest_token)
        if guest_id is not None:
            return ResolvedIdentity(GuestOwner(guest_id))

    return ResolvedIdentity(GuestOwner.new(), issue_guest_token=True)
