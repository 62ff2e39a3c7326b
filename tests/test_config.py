from clinic_api.core.config import Settings


class TestSettings:

    def test_testing_flag_read_from_environment(self, monkeypatch):
        monkeypatch.setenv("TESTING", "true")
        monkeypatch.setenv("TEST_DATABASE_URL", "sqlite:///./other.db")
        settings = Settings(_env_file=None)
        assert settings.TESTING is True
        assert settings.get_database_url == "sqlite:///./other.db"

    def test_testing_flag_defaults_off(self, monkeypatch):
        monkeypatch.delenv("TESTING", raising=False)
        settings = Settings(_env_file=None, DATABASE_URL="postgresql://u:p@db/clinic")
        assert settings.TESTING is False
        assert settings.get_database_url == "postgresql://u:p@db/clinic"
