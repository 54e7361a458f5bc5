import asyncio

import pytest

from hospidesk.client.app import ClientApp
from hospidesk.client.screens.login import LoginScreen
from hospidesk.core import errors
from hospidesk.core.config import settings
from hospidesk.core.errors import AuthError
from hospidesk.core.security import create_access_token, decode_token
from hospidesk.identity.local import LocalIdentityProvider
from hospidesk.services.auth import register_user


@pytest.mark.parametrize("code, message", [
    ("user-not-found", "Correo o contraseña incorrectos."),
    ("invalid-credential", "Correo o contraseña incorrectos."),
    ("email-already-in-use", "El correo electrónico ya está en uso."),
    ("weak-password", "La contraseña debe tener al menos 6 caracteres."),
    ("network-request-failed", errors.AUTH_GENERIC),
])
def test_auth_error_messages(code, message):
    assert errors.auth_error_message(code) == message
    err = AuthError(code)
    assert err.code == code and err.message == message


def _code(coro):
    with pytest.raises(AuthError) as exc:
        asyncio.run(coro)
    return exc.value.code


def test_identity_error_codes(backend):
    identity = backend.identity()
    asyncio.run(identity.sign_up("ana@hospital.cl", "secreto1"))

    assert _code(identity.sign_in("nadie@hospital.cl", "secreto1")) == "user-not-found"
    assert _code(identity.sign_in("ana@hospital.cl", "otra-clave")) == "invalid-credential"
    assert _code(identity.sign_up("ANA@hospital.cl", "secreto1")) == "email-already-in-use"
    assert _code(identity.sign_up("pedro@hospital.cl", "123")) == "weak-password"
    assert _code(identity.sign_up("no-es-un-correo", "secreto1")) == "invalid-email"


def test_token_round_trip(backend):
    identity = backend.identity()
    principal = asyncio.run(identity.sign_up("ana@hospital.cl", "secreto1"))
    assert identity.current == principal

    decoded = identity.verify_token(principal.token)
    assert decoded.uid == principal.uid and decoded.email == "ana@hospital.cl"

    with pytest.raises(ValueError):
        identity.verify_token("not-a-token")
    other = LocalIdentityProvider(backend.credentials, secret="other-secret")
    with pytest.raises(ValueError):
        other.verify_token(principal.token)


def test_self_signup_can_be_disabled(backend, monkeypatch):
    monkeypatch.setattr(settings, "allow_self_signup", False)
    code = _code(register_user(backend.identity(), backend.users, {
        "email": "ana@hospital.cl",
        "password": "secreto1",
        "name": "Ana",
        "sector": "Urgencias",
    }))
    assert code == "operation-not-allowed"


def test_login_screen_shows_mapped_errors(backend):
    app = ClientApp(backend)
    app.start()

    async def main():
        await backend.identity().sign_up("ana@hospital.cl", "secreto1")
        login = app.open(LoginScreen)
        assert login.submit_label == "Acceder"

        assert not await login.submit()
        assert login.error == "Por favor ingresa tu correo y contraseña."

        login.email, login.password = "ana@hospital.cl", "equivocada"
        assert not await login.submit()
        assert login.error == "Correo o contraseña incorrectos."
        assert login.password == "equivocada"

        login.toggle_mode()
        assert login.error is None and login.submit_label == "Crear Cuenta"
        login.name, login.sector, login.password = "Ana", "Urgencias", "secreto1"
        assert not await login.submit()
        assert login.error == "El correo electrónico ya está en uso."

    asyncio.run(main())


def test_expired_token_rejected_and_no_role_claim():
    expired = create_access_token(subject="u1", email="u1@hospital.cl", secret="s", expires_minutes=-5)
    with pytest.raises(ValueError, match="token_expired"):
        decode_token(expired, "s")

    valid = create_access_token(subject="u1", email="u1@hospital.cl", secret="s")
    claims = decode_token(valid, "s")
    assert claims["sub"] == "u1" and claims["type"] == "access"
    assert "role" not in claims
