import uuid
from datetime import datetime, timedelta, timezone

from jose import jwt

from cart_engine.domain.identity import GuestOwner, UserOwner, resolve_identity
from cart_engine.services.token_service import TokenService
from cart_engine.utils.settings import JWT_ALGORITHM, SECRET_KEY

from tests.conftest import make_access_token


def _expired_guest_token(guest_id):
    past = datetime.now(timezone.utc) - timedelta(hours=1)
    return jwt.encode(
        {"sub": str(guest_id), "typ": "guest", "iat": past - timedelta(hours=1), "exp": past},
        SECRET_KEY,
        algorithm=JWT_ALGORITHM,
    )


class TestResolveIdentity:
    def setup_method(self):
        self.tokens = TokenService()

    def test_authenticated_user_wins_over_guest_token(self):
        token = self.tokens.mint_guest_token(uuid.uuid4())
        identity = resolve_identity(7, token, self.tokens)
        assert identity.owner == UserOwner(7)
        assert identity.issue_guest_token is False

    def test_valid_guest_token_keeps_guest_id(self):
        guest_id = uuid.uuid4()
        identity = resolve_identity(None, self.tokens.mint_guest_token(guest_id), self.tokens)
        assert identity.owner == GuestOwner(guest_id)
        assert identity.issue_guest_token is False

    def test_missing_token_mints_new_guest(self):
        identity = resolve_identity(None, None, self.tokens)
        assert isinstance(identity.owner, GuestOwner)
        assert identity.issue_guest_token is True

    def test_garbage_token_is_discarded(self):
        identity = resolve_identity(None, "not-a-token", self.tokens)
        assert isinstance(identity.owner, GuestOwner)
        assert identity.issue_guest_token is True

    def test_expired_token_is_discarded(self):
        guest_id = uuid.uuid4()
        identity = resolve_identity(None, _expired_guest_token(guest_id), self.tokens)
        assert identity.owner != GuestOwner(guest_id)
        assert identity.issue_guest_token is True

    def test_token_signed_with_other_key_is_discarded(self):
        other = TokenService(secret_key="someone-else")
        guest_id = uuid.uuid4()
        identity = resolve_identity(None, other.mint_guest_token(guest_id), self.tokens)
        assert identity.owner != GuestOwner(guest_id)
        assert identity.issue_guest_token is True

    def test_access_token_is_not_a_guest_token(self):
        identity = resolve_identity(None, make_access_token(3), self.tokens)
        assert isinstance(identity.owner, GuestOwner)
        assert identity.issue_guest_token is True


class TestTokenService:
    def test_reads_user_id_from_access_token(self):
        assert TokenService().read_user_id(make_access_token(42)) == 42

    def test_guest_token_is_not_an_access_token(self):
        tokens = TokenService()
        assert tokens.read_user_id(tokens.mint_guest_token(uuid.uuid4())) is None

    def test_expired_access_token_rejected(self):
        token = make_access_token(42, expires_in=timedelta(seconds=-10))
        assert TokenService().read_user_id(token) is None

    def test_guest_token_round_trip(self):
        tokens = TokenService()
        guest_id = uuid.uuid4()
        assert tokens.read_guest_id(tokens.mint_guest_token(guest_id)) == guest_id
