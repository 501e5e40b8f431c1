"""Tests for configuration management."""

import pytest
from pydantic import ValidationError

from pdcli.config import (
    ConfigLoader,
    OAuthType,
    PdConfig,
    load_config,
    merge_config,
)
from pdcli.core.exceptions import ConfigError
from pdcli.core.logging import LogLevel
from pdcli.core.output import OutputFormat


class TestPdConfig:
    """Tests for PdConfig."""

    def test_default_values(self):
        config = PdConfig()
        assert config.authtoken is None
        assert config.oauth_type is None
        assert config.scopes == ()

    def test_scopes_deduplicated_in_order(self):
        config = PdConfig(scopes=["incidents.read", "services.read", "incidents.read", " "])
        assert config.scopes == ("incidents.read", "services.read")

    def test_scopes_from_string(self):
        config = PdConfig(scopes="read write")
        assert config.scopes == ("read", "write")

    def test_warn_loglevel_alias(self):
        assert PdConfig(loglevel="WARN").loglevel == LogLevel.WARNING

    def test_frozen(self):
        config = PdConfig(authtoken="abc")
        with pytest.raises(ValidationError):
            config.authtoken = "other"

    def test_oauth_config_projection(self):
        config = PdConfig(
            oauth_type="scoped",
            client_id="id",
            client_secret="secret",
            scopes=["incidents.read"],
            token_file="/tmp/tok.json",
        )
        oauth = config.oauth_config()
        assert oauth.application_type == OAuthType.SCOPED
        assert oauth.client_id == "id"
        assert oauth.scopes == ("incidents.read",)
        assert oauth.token_file == "/tmp/tok.json"

    def test_effective_type_defaults_to_classic(self):
        assert PdConfig().oauth_config().effective_type == OAuthType.CLASSIC


class TestMergeConfig:
    """Tests for merging file and flag values."""

    def test_flags_win(self):
        file_config = PdConfig(authtoken="file-token", client_id="file-id")
        flags = PdConfig(authtoken="flag-token")
        merged = merge_config(file_config, flags)
        assert merged.authtoken == "flag-token"
        assert merged.client_id == "file-id"

    def test_empty_flags_do_not_override(self):
        file_config = PdConfig(
            authtoken="file-token",
            scopes=["read"],
            oauth_type="classic",
        )
        flags = PdConfig(authtoken="", scopes=[], oauth_type=None)
        merged = merge_config(file_config, flags)
        assert merged.authtoken == "file-token"
        assert merged.scopes == ("read",)
        assert merged.oauth_type == OAuthType.CLASSIC

    def test_flag_scopes_replace_file_scopes(self):
        merged = merge_config(PdConfig(scopes=["read"]), PdConfig(scopes=["write"]))
        assert merged.scopes == ("write",)

    def test_inputs_unchanged(self):
        file_config = PdConfig(authtoken="file-token")
        merge_config(file_config, PdConfig(authtoken="flag-token"))
        assert file_config.authtoken == "file-token"


class TestConfigLoader:
    """Tests for ConfigLoader."""

    def test_missing_default_file_is_not_an_error(self, home_dir):
        config = ConfigLoader().load_file()
        assert config == PdConfig()

    def test_load_default_file(self, home_dir):
        (home_dir / ".pd.yml").write_text(
            "authtoken: file-token\n"
            "loglevel: debug\n"
            "outputformat: json\n"
            "oauth_type: scoped\n"
            "client_id: id\n"
            "client_secret: secret\n"
            "scopes:\n"
            "  - incidents.read\n"
            "token_file: ~/tok.json\n"
        )
        config = ConfigLoader().load_file()
        assert config.authtoken == "file-token"
        assert config.loglevel == LogLevel.DEBUG
        assert config.output_format == OutputFormat.JSON
        assert config.oauth_type == OAuthType.SCOPED
        assert config.scopes == ("incidents.read",)

    def test_explicit_file_not_found(self, tmp_path):
        with pytest.raises(ConfigError):
            ConfigLoader().load_file(tmp_path / "missing.yml")

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "bad.yml"
        path.write_text("authtoken: [unclosed\n")
        with pytest.raises(ConfigError):
            ConfigLoader().load_file(path)

    def test_invalid_value(self, tmp_path):
        path = tmp_path / "bad.yml"
        path.write_text("oauth_type: fancy\n")
        with pytest.raises(ConfigError):
            ConfigLoader().load_file(path)

    def test_scopes_not_a_list(self, tmp_path):
        path = tmp_path / "bad.yml"
        path.write_text("scopes: 5\n")
        with pytest.raises(ConfigError):
            ConfigLoader().load_file(path)

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "list.yml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigError):
            ConfigLoader().load_file(path)


class TestLoadConfig:
    """Tests for load_config."""

    def test_flags_override_file(self, home_dir):
        (home_dir / ".pd.yml").write_text("authtoken: file-token\nclient_id: file-id\n")
        config = load_config({"authtoken": "flag-token", "client_id": ""})
        assert config.authtoken == "flag-token"
        assert config.client_id == "file-id"

    def test_no_overrides(self, home_dir):
        (home_dir / ".pd.yml").write_text("authtoken: file-token\n")
        assert load_config().authtoken == "file-token"

    def test_explicit_config_file(self, tmp_path):
        path = tmp_path / "custom.yml"
        path.write_text("client_id: custom-id\n")
        config = load_config(PdConfig(), config_file=path)
        assert config.client_id == "custom-id"
