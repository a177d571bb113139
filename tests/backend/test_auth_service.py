"""
Credential Service Tests for Hackathon Registration.

Tests for:
- Password hashing and policy
- Participant signup/login and profile updates
- Admin login
- Role-scoped token verification
"""

from datetime import timedelta

import pytest

from hackreg.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    InternalError,
    ValidationError,
)
from hackreg.services.auth_service import (
    ADMIN,
    PARTICIPANT,
    CredentialService,
    get_password_hash,
    validate_password_strength,
    verify_password,
)


class TestPasswords:
    """Tests for hashing and the signup password policy."""

    def test_hash_is_salted_and_verifiable(self):
        first = get_password_hash("Str0ng!Pass")
        second = get_password_hash("Str0ng!Pass")

        assert first != second
        assert "Str0ng!Pass" not in first
        assert verify_password("Str0ng!Pass", first)
        assert not verify_password("wrong", first)

    @pytest.mark.parametrize("password", ["Sh0rt!", "alllower1!", "ALLUPPER1!", "NoDigits!!", "NoSpecial12"])
    def test_weak_passwords_rejected(self, password):
        with pytest.raises(ValidationError):
            validate_password_strength(password)

    def test_strong_password_accepted(self):
        validate_password_strength("Str0ng!Pass")


class TestParticipantAccounts:
    """Signup, login and profile."""

    async def test_signup_stores_hash_and_returns_token(self, credential_service):
        user, token = await credential_service.signup("Asha Rao", " Asha@Example.com ", "Str0ng!Pass")

        assert user.email == "asha@example.com"
        assert user.role == PARTICIPANT
        assert user.password_hash != "Str0ng!Pass"
        assert user.last_login is not None
        claims = credential_service.verify_token(token, PARTICIPANT)
        assert claims["sub"] == str(user.id)

    async def test_signup_duplicate_email(self, credential_service, participant):
        with pytest.raises(ValidationError) as exc_info:
            await credential_service.signup("Someone", "ASHA@example.com", "Str0ng!Pass")
        assert exc_info.value.message == "User with this email already exists"

    async def test_signup_weak_password(self, credential_service):
        with pytest.raises(ValidationError) as exc_info:
            await credential_service.signup("Asha Rao", "asha@example.com", "password")
        assert exc_info.value.errors[0]["field"] == "password"

    async def test_login_success_updates_last_login(self, credential_service, participant):
        before = participant.last_login
        user, token = await credential_service.login("asha@example.com", "Str0ng!Pass")

        assert user.id == participant.id
        assert user.last_login >= before
        assert credential_service.verify_token(token, PARTICIPANT)["role"] == PARTICIPANT

    async def test_login_failures_are_indistinguishable(self, credential_service, participant):
        with pytest.raises(AuthenticationError) as wrong_password:
            await credential_service.login("asha@example.com", "Wr0ng!Pass")
        with pytest.raises(AuthenticationError) as unknown_email:
            await credential_service.login("nobody@example.com", "Str0ng!Pass")

        assert wrong_password.value.message == unknown_email.value.message == "Invalid email or password"

    async def test_update_profile(self, credential_service, participant):
        user = await credential_service.update_profile(
            participant.id, name="Asha R", email="Asha.New@Example.com"
        )
        assert user.name == "Asha R"
        assert user.email == "asha.new@example.com"

    async def test_update_profile_email_taken(self, credential_service, participant, other_participant):
        with pytest.raises(ValidationError):
            await credential_service.update_profile(participant.id, email="ravi@example.com")


class TestAdminLogin:
    """Admin login against configured credentials."""

    def test_admin_login(self, credential_service):
        admin, token = credential_service.admin_login("ADMIN@hackathon.example.com", "Admin@1234")

        assert admin.id == "admin"
        assert admin.name == "Test Admin"
        assert credential_service.verify_token(token, ADMIN)["sub"] == "admin"

    @pytest.mark.parametrize(
        "email,password",
        [("admin@hackathon.example.com", "wrong"), ("someone@hackathon.example.com", "Admin@1234")],
    )
    def test_admin_login_rejected(self, credential_service, email, password):
        with pytest.raises(AuthenticationError) as exc_info:
            credential_service.admin_login(email, password)
        assert exc_info.value.message == "Invalid admin credentials"

    def test_prehashed_admin_password(self, settings):
        configured = settings.model_copy(
            update={"admin_password": None, "admin_password_hash": get_password_hash("Hashed@123")}
        )
        admin, _ = CredentialService(None, configured).admin_login("admin@hackathon.example.com", "Hashed@123")
        assert admin.role == ADMIN

    def test_missing_admin_configuration(self, settings):
        unconfigured = settings.model_copy(update={"admin_email": None})
        with pytest.raises(InternalError) as exc_info:
            CredentialService(None, unconfigured).admin_login("admin@hackathon.example.com", "Admin@1234")
        assert exc_info.value.message == "Admin credentials not configured"
        assert exc_info.value.status_code == 500


class TestTokens:
    """Role segregation and expiry."""

    def test_participant_token_rejected_on_admin_role(self, credential_service):
        token = credential_service.issue_token("some-user", PARTICIPANT)
        with pytest.raises(AuthorizationError):
            credential_service.verify_token(token, ADMIN)

    def test_admin_token_rejected_on_participant_role(self, credential_service):
        token = credential_service.issue_token("admin", ADMIN)
        with pytest.raises(AuthorizationError):
            credential_service.verify_token(token, PARTICIPANT)

    def test_role_claim_must_match_secret(self, settings):
        # Same secret for both roles: the role claim still decides
        shared = settings.model_copy(update={"jwt_secret_admin": settings.jwt_secret_user})
        service = CredentialService(None, shared)
        token = service.issue_token("some-user", PARTICIPANT)
        with pytest.raises(AuthorizationError):
            service.verify_token(token, ADMIN)

    def test_expired_token(self, credential_service):
        token = credential_service.issue_token("some-user", PARTICIPANT, expires_delta=timedelta(seconds=-10))
        with pytest.raises(AuthenticationError) as exc_info:
            credential_service.verify_token(token, PARTICIPANT)
        assert "expired" in exc_info.value.message

    @pytest.mark.parametrize("token", ["not-a-jwt", "a.b.c"])
    def test_malformed_token(self, credential_service, token):
        with pytest.raises(AuthenticationError):
            credential_service.verify_token(token, PARTICIPANT)

    def test_foreign_secret(self, settings):
        forged = CredentialService(None, settings.model_copy(update={"jwt_secret_user": "attacker"}))
        token = forged.issue_token("some-user", PARTICIPANT)
        with pytest.raises(AuthenticationError):
            CredentialService(None, settings).verify_token(token, PARTICIPANT)
