"""
Tests for configuration loading
"""
import pytest

from toolhub.config import Config


@pytest.fixture
def clean_env(monkeypatch):
    for name in ('PORT', 'VERCEL', 'NODE_ENV', 'ENVIRONMENT', 'JIRA_EPIC_PROBE_KEYS', 'UPLOAD_DIR'):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestConfig:

    def test_defaults_without_file(self, clean_env, tmp_path):
        config = Config(str(tmp_path / "missing.yaml"))

        assert config.get_port() == 3001
        assert config.is_production() is False
        assert config.get_epic_probe_keys() == []
        assert config.jira['default_sprint_name'] == 'Active Sprint Backlog (249)'
        assert config.has_confluence_credentials() is False

    def test_env_substitution_and_defaults(self, clean_env, tmp_path):
        clean_env.setenv('JIRA_EPIC_PROBE_KEYS', 'PAY-1, PAY-2,,')
        path = tmp_path / "config.yaml"
        path.write_text(
            "server:\n"
            "  port: ${TOOLHUB_TEST_PORT:4010}\n"
            "jira:\n"
            "  epic_probe_keys: ${JIRA_EPIC_PROBE_KEYS:}\n"
            "  bulk_delay_seconds: 1\n"
        )

        config = Config(str(path))

        assert config.get_port() == 4010
        assert config.get_epic_probe_keys() == ['PAY-1', 'PAY-2']
        assert config.jira['bulk_delay_seconds'] == 1
        assert config.jira['timeout'] == 30

    def test_probe_keys_as_list(self, clean_env, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("jira:\n  epic_probe_keys: [PAY-1, PAY-9]\n")

        assert Config(str(path)).get_epic_probe_keys() == ['PAY-1', 'PAY-9']

    def test_port_from_environment(self, clean_env, tmp_path):
        clean_env.setenv('PORT', '8080')

        assert Config(str(tmp_path / "missing.yaml")).get_port() == 8080

    @pytest.mark.parametrize("name,value", [("VERCEL", "1"), ("NODE_ENV", "production"), ("ENVIRONMENT", "Production")])
    def test_production_mode(self, clean_env, tmp_path, name, value):
        clean_env.setenv(name, value)
        config = Config(str(tmp_path / "missing.yaml"))

        assert config.is_production() is True
        assert config.get_upload_directory() == '/tmp/uploads'

    def test_development_upload_directory(self, clean_env, tmp_path):
        clean_env.chdir(tmp_path)

        assert Config(str(tmp_path / "missing.yaml")).get_upload_directory() == str(tmp_path / "uploads")

    def test_cors_origins_from_string(self, clean_env, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("server:\n  cors_origins: 'https://a.example, https://b.example'\n")

        assert Config(str(path)).get_cors_origins() == ['https://a.example', 'https://b.example']
