from shared.config import Settings


class TestShippingCountries:
    def test_parses_and_deduplicates(self):
        settings = Settings(shipping_countries="us, ca ,US,gb")

        assert settings.allowed_shipping_countries == ["US", "CA", "GB"]

    def test_ignores_invalid_codes(self):
        settings = Settings(shipping_countries="USA,1A,de")

        assert settings.allowed_shipping_countries == ["DE"]

    def test_falls_back_to_us(self):
        assert Settings(shipping_countries=" , ").allowed_shipping_countries == ["US"]


class TestAdminEmailList:
    def test_normalizes(self):
        settings = Settings(admin_emails="A@Example.com, b@example.com ,")

        assert settings.admin_email_list == {"a@example.com", "b@example.com"}

    def test_empty(self):
        assert Settings(admin_emails="").admin_email_list == set()


class TestEnvironment:
    def test_reads_prefixed_variables(self, settings_override):
        settings = settings_override(checkout_currency="eur", log_level="error")

        assert settings.checkout_currency == "eur"
        assert settings.log_level == "error"

    def test_test_environment_is_active(self):
        from shared.config import get_settings

        settings = get_settings()
        assert settings.env == "test"
        assert settings.payment_gateway == "fake"
