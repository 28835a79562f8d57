from identity.access import is_admin_email, normalize_email
from identity.provider import (
    HeaderIdentityProvider,
    Identity,
    IdentityProvider,
    get_identity_provider,
    reset_identity_provider,
    set_identity_provider,
)


class TestHeaderIdentityProvider:
    def test_reads_user_id_and_email(self):
        identity = HeaderIdentityProvider().authenticate({"x-user-id": " user-1 ", "x-user-email": "a@example.com"})

        assert identity == Identity(user_id="user-1", email="a@example.com")

    def test_email_is_optional(self):
        identity = HeaderIdentityProvider().authenticate({"x-user-id": "user-1"})

        assert identity.email is None

    def test_no_user_id_means_anonymous(self):
        assert HeaderIdentityProvider().authenticate({}) is None
        assert HeaderIdentityProvider().authenticate({"x-user-id": "  "}) is None


class TestProviderRegistry:
    def test_default_is_header_provider(self):
        assert isinstance(get_identity_provider(), HeaderIdentityProvider)

    def test_override(self):
        class StaticProvider(IdentityProvider):
            def authenticate(self, headers):
                return Identity(user_id="static")

        provider = StaticProvider()
        set_identity_provider(provider)
        assert get_identity_provider() is provider

        reset_identity_provider()
        assert isinstance(get_identity_provider(), HeaderIdentityProvider)


class TestAdminEmails:
    def test_normalize_email(self):
        assert normalize_email("  Admin@Example.COM ") == "admin@example.com"
        assert normalize_email(None) == ""

    def test_configured_admin(self):
        assert is_admin_email("ADMIN@example.com")

    def test_other_emails(self):
        assert not is_admin_email("shopper@example.com")
        assert not is_admin_email(None)

    def test_list_from_settings(self, settings_override):
        settings_override(admin_emails=" ops@example.com , Owner@Example.com,, ")

        assert is_admin_email("owner@example.com")
        assert is_admin_email("ops@example.com")
        assert not is_admin_email("admin@example.com")
