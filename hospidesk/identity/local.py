# hospidesk/identity/local.py
from __future__ import annotations

import logging
import uuid

from email_validator import EmailNotValidError, validate_email

from hospidesk.core.config import settings
from hospidesk.core.errors import AuthError
from hospidesk.core.security import (
    create_access_token,
    decode_token,
    hash_password,
    verify_password,
)
from hospidesk.identity.base import IdentityProvider, Principal
from hospidesk.identity.credentials import CredentialRecord, CredentialStore

log = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


class LocalIdentityProvider(IdentityProvider):
    """
    Email/password identity backed by a CredentialStore, issuing JWT access
    tokens. One instance per client session; the credential store is shared.
    """

    def __init__(
        self,
        credentials: CredentialStore,
        *,
        secret: str | None = None,
        expires_minutes: int | None = None,
        min_password_length: int | None = None,
    ):
        super().__init__()
        self._credentials = credentials
        self._secret = secret or settings.jwt_secret
        self._expires = expires_minutes or settings.jwt_expires_min
        self._min_password = min_password_length or settings.min_password_length

    def _issue(self, record: CredentialRecord, *, remember_me: bool = False) -> Principal:
        minutes = settings.jwt_remember_expires_min if remember_me else self._expires
        token = create_access_token(
            subject=record.uid,
            email=record.email,
            secret=self._secret,
            expires_minutes=minutes,
        )
        return Principal(uid=record.uid, email=record.email, token=token)

    async def sign_in(self, email: str, password: str, *, remember_me: bool = False) -> Principal:
        record = await self._credentials.get_by_email(normalize_email(email))
        if record is None:
            raise AuthError("user-not-found")
        if not verify_password(password, record.password_hash):
            raise AuthError("invalid-credential")
        principal = self._issue(record, remember_me=remember_me)
        self._set_current(principal)
        return principal

    async def sign_up(self, email: str, password: str) -> Principal:
        try:
            email = validate_email(normalize_email(email), check_deliverability=False).normalized
        except EmailNotValidError as e:
            raise AuthError("invalid-email") from e
        if len(password) < self._min_password:
            raise AuthError("weak-password")

        record = CredentialRecord(uid=uuid.uuid4().hex, email=email, password_hash=hash_password(password))
        await self._credentials.add(record)
        log.info("account created: %s", record.uid)
        principal = self._issue(record)
        self._set_current(principal)
        return principal

    def verify_token(self, token: str) -> Principal:
        """Decode a bearer token into its principal (ValueError when invalid)."""
        data = decode_token(token, self._secret)
        return Principal(uid=data["sub"], email=data.get("email", ""), token=token)
