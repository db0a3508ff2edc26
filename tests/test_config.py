"""Tests for radio.config -- XDG paths, config loading, credential sources."""

from __future__ import annotations

import io
from pathlib import Path

import pytest

from radio.config import (
    config_path,
    get_config_dir,
    get_data_dir,
    load_config,
    resolve_credential,
)
from radio.exceptions import ConfigError
from radio.models import RadioConfig


# ---------------------------------------------------------------------------
# XDG path resolution
# ---------------------------------------------------------------------------


class TestXDGPaths:
    def test_config_dir_from_env(self, isolated_config: Path) -> None:
        path = get_config_dir()
        assert path == isolated_config / "config" / "radio"
        assert path.is_dir()

    def test_config_dir_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("radio.config._is_xdg_platform", lambda: True)
        monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
        monkeypatch.setattr(Path, "home", lambda: tmp_path)
        assert get_config_dir() == tmp_path / ".config" / "radio"

    def test_data_dir_from_env(self, isolated_config: Path) -> None:
        assert get_data_dir() == isolated_config / "data" / "radio"

    def test_non_xdg_fallback(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("radio.config._is_xdg_platform", lambda: False)
        monkeypatch.setattr(Path, "home", lambda: tmp_path)
        assert get_config_dir() == tmp_path / ".radio"
        assert get_data_dir() == tmp_path / ".radio" / "logs"


class TestConfigPath:
    def test_default(self, isolated_config: Path) -> None:
        assert config_path() == isolated_config / "config" / "radio" / "config.json"

    def test_env_override(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RADIO_CONFIG", str(isolated_config / "other.json"))
        assert config_path() == isolated_config / "other.json"

    def test_flag_beats_env(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RADIO_CONFIG", str(isolated_config / "env.json"))
        assert config_path(str(isolated_config / "flag.json")) == isolated_config / "flag.json"

    def test_toml_used_when_no_json(self, isolated_config: Path) -> None:
        config_dir = isolated_config / "config" / "radio"
        config_dir.mkdir(parents=True)
        (config_dir / "config.toml").write_text("")
        assert config_path() == config_dir / "config.toml"

    def test_json_preferred_over_toml(self, isolated_config: Path) -> None:
        config_dir = isolated_config / "config" / "radio"
        config_dir.mkdir(parents=True)
        (config_dir / "config.toml").write_text("")
        (config_dir / "config.json").write_text("{}")
        assert config_path() == config_dir / "config.json"


# ---------------------------------------------------------------------------
# load_config
# ---------------------------------------------------------------------------


class TestLoadConfig:
    def test_literal_credentials(self, write_config) -> None:
        path = write_config(
            {
                "tidal": {"client_id": "tid", "client_secret": "tsecret"},
                "redirect_timeout": 120,
            }
        )
        config = load_config(path)

        assert isinstance(config, RadioConfig)
        assert config.tidal is not None
        assert config.tidal.client_id == "tid"
        assert config.tidal.client_secret.get_secret_value() == "tsecret"
        assert config.spotify is None
        assert config.redirect_timeout == 120
        assert config.open_browser is True

    def test_env_and_file_sources(
        self, write_config, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("SPOTIFY_SECRET", "from-env")
        secret_file = tmp_path / "tidal.secret"
        secret_file.write_text("from-file\n")
        path = write_config(
            {
                "spotify": {"client_id": "sid", "client_secret": "env:SPOTIFY_SECRET"},
                "tidal": {"client_id": "tid", "client_secret": f"file:{secret_file}"},
            }
        )
        config = load_config(path)

        assert config.spotify.client_secret.get_secret_value() == "from-env"
        assert config.tidal.client_secret.get_secret_value() == "from-file"

    def test_unresolvable_source_names_field(
        self, write_config, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.delenv("NOPE_SECRET", raising=False)
        path = write_config({"tidal": {"client_id": "tid", "client_secret": "env:NOPE_SECRET"}})
        with pytest.raises(ConfigError, match="tidal.client_secret"):
            load_config(path)

    def test_default_path(self, isolated_config: Path) -> None:
        path = config_path()
        path.write_text('{"spotify": {"client_id": "s", "client_secret": "x"}}')
        assert load_config().spotify.client_id == "s"

    def test_toml_config(self, tmp_path: Path) -> None:
        path = tmp_path / "config.toml"
        path.write_text(
            "redirect_timeout = 60\n"
            "\n"
            "[tidal]\n"
            "client_id = \"tid\"\n"
            "client_secret = \"tsecret\"\n"
        )
        config = load_config(path)

        assert config.tidal.client_id == "tid"
        assert config.tidal.client_secret.get_secret_value() == "tsecret"
        assert config.redirect_timeout == 60
        assert config.spotify is None

    def test_invalid_toml(self, tmp_path: Path) -> None:
        path = tmp_path / "config.toml"
        path.write_text("[tidal\nclient_id = ")
        with pytest.raises(ConfigError, match="Invalid config"):
            load_config(path)

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="not found.*config.json or config.toml"):
            load_config(tmp_path / "absent.json")

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "config.json"
        path.write_text("{not json")
        with pytest.raises(ConfigError, match="Invalid config"):
            load_config(path)

    def test_not_an_object(self, write_config) -> None:
        with pytest.raises(ConfigError, match="JSON object"):
            load_config(write_config(["tidal"]))

    def test_missing_client_secret(self, write_config) -> None:
        with pytest.raises(ConfigError, match="Invalid config"):
            load_config(write_config({"tidal": {"client_id": "tid"}}))

    def test_negative_timeout_rejected(self, write_config) -> None:
        with pytest.raises(ConfigError):
            load_config(write_config({"redirect_timeout": -1}))

    def test_secret_masked_in_repr(self, write_config) -> None:
        config = load_config(
            write_config({"tidal": {"client_id": "tid", "client_secret": "hunter2"}})
        )
        assert "hunter2" not in repr(config)
        assert "hunter2" not in str(config.tidal)

    def test_credentials_for(self, write_config) -> None:
        config = load_config(
            write_config(
                {"tidal": {"client_id": "tid", "client_secret": "x"}, "redirect_timeout": 5}
            )
        )
        assert config.credentials_for("tidal").client_id == "tid"
        assert config.credentials_for("spotify") is None
        assert config.credentials_for("redirect_timeout") is None
        assert config.credentials_for("unknown") is None


# ---------------------------------------------------------------------------
# resolve_credential
# ---------------------------------------------------------------------------


class TestResolveCredential:
    def test_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MY_SECRET", "abc")
        assert resolve_credential("env:MY_SECRET") == "abc"

    def test_env_missing(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("MY_SECRET", raising=False)
        with pytest.raises(ConfigError, match="MY_SECRET"):
            resolve_credential("env:MY_SECRET")

    def test_file(self, tmp_path: Path) -> None:
        secret = tmp_path / "secret"
        secret.write_text("  value  \n")
        assert resolve_credential(f"file:{secret}") == "value"

    def test_file_missing(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="not found"):
            resolve_credential(f"file:{tmp_path / 'absent'}")

    def test_prompt_requires_tty(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("radio.config.sys.stdin", io.StringIO())
        with pytest.raises(ConfigError, match="TTY"):
            resolve_credential("prompt")

    def test_literal(self) -> None:
        assert resolve_credential("plain-value") == "plain-value"
