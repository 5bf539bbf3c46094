"""
Unit tests for explorer.configs module.

Tests:
- ExplorerConfig defaults and validation
- KindLookupConfig token resolution from the environment
- LoggingConfig level validation
- from_yaml() / from_dict() error mapping
"""

from pathlib import Path

import pytest
from pydantic import SecretStr, ValidationError

from kindscope.core.exceptions import ConfigurationError
from kindscope.explorer.configs import ExplorerConfig, KindLookupConfig, LoggingConfig
from kindscope.models import DEFAULT_RELAYS


class TestKindLookupConfig:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("GITHUB_TOKEN", raising=False)
        config = KindLookupConfig()
        assert config.enabled is False
        assert config.api_url == "https://api.github.com"
        assert config.repo == "nostr-protocol/nips"
        assert config.timeout == 10.0
        assert config.max_response_size == 5_242_880
        assert config.token is None

    def test_token_from_env(self, monkeypatch):
        monkeypatch.setenv("GITHUB_TOKEN", "ghp_example")
        config = KindLookupConfig()
        assert isinstance(config.token, SecretStr)
        assert config.token.get_secret_value() == "ghp_example"
        assert "ghp_example" not in repr(config)

    def test_custom_token_env(self, monkeypatch):
        monkeypatch.setenv("KINDSCOPE_GH", "other")
        assert KindLookupConfig(token_env="KINDSCOPE_GH").token.get_secret_value() == "other"

    def test_explicit_token_wins(self, monkeypatch):
        monkeypatch.setenv("GITHUB_TOKEN", "from-env")
        assert KindLookupConfig(token="explicit").token.get_secret_value() == "explicit"

    def test_empty_env_ignored(self, monkeypatch):
        monkeypatch.setenv("GITHUB_TOKEN", "")
        assert KindLookupConfig().token is None

    def test_trailing_slash_stripped(self):
        assert KindLookupConfig(api_url="https://ghe.example/api/").api_url == "https://ghe.example/api"

    @pytest.mark.parametrize(
        ("field", "value"),
        [("timeout", 0), ("timeout", 500), ("max_response_size", 10), ("token_env", "")],
    )
    def test_bounds(self, field, value):
        with pytest.raises(ValidationError):
            KindLookupConfig(**{field: value})


class TestLoggingConfig:
    def test_defaults(self):
        config = LoggingConfig()
        assert config.level == "WARNING"
        assert config.json_output is False

    def test_invalid_level(self):
        with pytest.raises(ValidationError):
            LoggingConfig(level="VERBOSE")


class TestExplorerConfig:
    def test_defaults(self):
        config = ExplorerConfig()
        assert config.relays == list(DEFAULT_RELAYS)
        assert config.timeout == 10.0
        assert config.kind_names == {}
        assert config.lookup.enabled is False
        assert config.logging.level == "WARNING"

    def test_relays_stripped(self):
        config = ExplorerConfig(relays=["  wss://a.example ", "ws://b.example"])
        assert config.relays == ["wss://a.example", "ws://b.example"]

    def test_invalid_relay(self):
        with pytest.raises(ValidationError, match="ws:// or wss://"):
            ExplorerConfig(relays=["https://a.example"])

    def test_empty_relays(self):
        with pytest.raises(ValidationError):
            ExplorerConfig(relays=[])

    @pytest.mark.parametrize("timeout", [0.5, 121])
    def test_timeout_bounds(self, timeout):
        with pytest.raises(ValidationError):
            ExplorerConfig(timeout=timeout)

    def test_kind_names_string_keys(self):
        config = ExplorerConfig(kind_names={"1111": "Comment"})
        assert config.kind_names == {1111: "Comment"}

    def test_kind_names_out_of_range(self):
        with pytest.raises(ValidationError, match="out of range"):
            ExplorerConfig(kind_names={70000: "Too Big"})


class TestFromDict:
    def test_valid(self):
        config = ExplorerConfig.from_dict({"timeout": 15, "lookup": {"enabled": True}})
        assert config.timeout == 15.0
        assert config.lookup.enabled is True

    def test_invalid_wrapped(self):
        with pytest.raises(ConfigurationError):
            ExplorerConfig.from_dict({"timeout": "soon"})


class TestFromYaml:
    def test_full_file(self, tmp_path: Path):
        path = tmp_path / "kindscope.yaml"
        path.write_text(
            "timeout: 20\n"
            "relays:\n"
            "  - wss://relay.example\n"
            "kind_names:\n"
            "  1111: Comment\n"
            "logging:\n"
            "  level: DEBUG\n"
            "  json_output: true\n"
        )
        config = ExplorerConfig.from_yaml(str(path))
        assert config.timeout == 20.0
        assert config.relays == ["wss://relay.example"]
        assert config.kind_names == {1111: "Comment"}
        assert config.logging.level == "DEBUG"
        assert config.logging.json_output is True

    def test_empty_file(self, tmp_path: Path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert ExplorerConfig.from_yaml(str(path)) == ExplorerConfig()

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(ConfigurationError):
            ExplorerConfig.from_yaml(str(tmp_path / "absent.yaml"))

    def test_malformed_yaml(self, tmp_path: Path):
        path = tmp_path / "bad.yaml"
        path.write_text("relays: [unclosed\n")
        with pytest.raises(ConfigurationError, match="Invalid config file"):
            ExplorerConfig.from_yaml(str(path))

    def test_not_a_mapping(self, tmp_path: Path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigurationError):
            ExplorerConfig.from_yaml(str(path))

    def test_validation_failure(self, tmp_path: Path):
        path = tmp_path / "bad_relays.yaml"
        path.write_text("relays:\n  - http://nope.example\n")
        with pytest.raises(ConfigurationError, match="ws:// or wss://"):
            ExplorerConfig.from_yaml(str(path))


class TestShippedConfig:
    def test_example_config_is_valid(self):
        path = Path(__file__).parents[3] / "config" / "kindscope.yaml"
        config = ExplorerConfig.from_yaml(str(path))
        assert config.kind_names[1111] == "Comment"
        assert config.lookup.enabled is False
