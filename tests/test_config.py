"""Unit tests for provider configuration loading."""

import pytest
import yaml

from keboola_provider.config import API_KEY_ENV_VAR, ProviderConfig
from keboola_provider.endpoints import EndpointFamily
from keboola_provider.errors import ValidationError


def test_explicit_key_wins_over_environment():
    config = ProviderConfig.from_env("explicit", environ={API_KEY_ENV_VAR: "from-env"})
    assert config.api_key == "explicit"


def test_key_falls_back_to_environment():
    config = ProviderConfig.from_env(environ={API_KEY_ENV_VAR: "  from-env\n"})
    assert config.api_key == "from-env"


def test_missing_key_is_a_validation_error():
    with pytest.raises(ValidationError, match=API_KEY_ENV_VAR):
        ProviderConfig.from_env(environ={})


def test_blank_key_is_a_validation_error():
    with pytest.raises(ValidationError):
        ProviderConfig.from_env(environ={API_KEY_ENV_VAR: "   "})


def test_defaults():
    config = ProviderConfig.from_env("key", environ={})
    assert config.poll_interval == 0.25
    assert config.job_timeout is None
    assert config.request_timeout == 60.0
    assert config.base_urls == {}


def test_base_urls_from_environment_get_trailing_slash():
    config = ProviderConfig.from_env(
        "key",
        environ={"KEBOOLA_STORAGE_URL": "http://localhost:9000/v2", "KEBOOLA_SYRUP_URL": "http://localhost:9001/"},
    )
    assert config.base_urls == {
        EndpointFamily.STORAGE: "http://localhost:9000/v2/",
        EndpointFamily.SYRUP: "http://localhost:9001/",
    }


class TestFromFile:
    def test_loads_yaml(self, tmp_path):
        path = tmp_path / "keboola.yaml"
        path.write_text(yaml.safe_dump({
            "api_key": "file-key",
            "poll_interval": 1,
            "job_timeout": 600,
            "base_urls": {"file_import": "http://localhost:9002"},
        }))

        config = ProviderConfig.from_file(path, environ={})

        assert config.api_key == "file-key"
        assert config.poll_interval == 1.0
        assert config.job_timeout == 600.0
        assert config.base_urls == {EndpointFamily.FILE_IMPORT: "http://localhost:9002/"}

    def test_file_without_key_uses_environment(self, tmp_path):
        path = tmp_path / "keboola.yaml"
        path.write_text("request_timeout: 5\n")
        config = ProviderConfig.from_file(path, environ={API_KEY_ENV_VAR: "env-key"})
        assert config.api_key == "env-key"
        assert config.request_timeout == 5.0

    def test_file_overrides_environment_urls(self, tmp_path):
        path = tmp_path / "keboola.yaml"
        path.write_text("api_key: k\nbase_urls:\n  syrup: http://file/\n")
        config = ProviderConfig.from_file(path, environ={"KEBOOLA_SYRUP_URL": "http://env/"})
        assert config.base_urls[EndpointFamily.SYRUP] == "http://file/"

    def test_non_mapping_document(self, tmp_path):
        path = tmp_path / "keboola.yaml"
        path.write_text("- just\n- a list\n")
        with pytest.raises(ValidationError, match="must be a mapping"):
            ProviderConfig.from_file(path, environ={API_KEY_ENV_VAR: "k"})

    def test_invalid_values(self, tmp_path):
        path = tmp_path / "keboola.yaml"
        path.write_text("api_key: k\npoll_interval: soon\n")
        with pytest.raises(ValidationError, match="Invalid provider configuration"):
            ProviderConfig.from_file(path, environ={})
