"""Tests for guardian.adapters.config and WorkspacePaths."""

from pathlib import Path

import pytest

from guardian.adapters.config.loader import ConfigLoader, Settings
from guardian.core.exceptions import ConfigError
from guardian.core.paths import WorkspacePaths


class TestWorkspacePaths:
    def test_from_env(self, tmp_path):
        paths = WorkspacePaths.from_env({"GUARDIAN_HOME": str(tmp_path)})
        assert paths.home == tmp_path
        assert paths.private_key == tmp_path / "ssh-keys" / "id_rsa"
        assert paths.public_key == tmp_path / "ssh-keys" / "id_rsa.pub"
        assert paths.known_hosts == tmp_path / "ssh-keys" / "known_hosts"
        assert paths.host_data("box") == tmp_path / "host_data" / "box"

    def test_default_home(self):
        assert WorkspacePaths.from_env({}).home == Path("~/.guardian").expanduser()

    def test_ensure(self, paths):
        paths.ensure()
        assert paths.ssh_keys_dir.is_dir()
        assert paths.host_data_dir.is_dir()
        assert sorted(p.name for p in paths.home.iterdir()) == ["host_data", "ssh-keys"]


class TestConfigLoader:
    def test_defaults(self, tmp_path):
        settings = ConfigLoader(environ={}).load(tmp_path / "missing.toml")
        assert settings == Settings()

    def test_priority(self, tmp_path):
        toml = tmp_path / "guardian.toml"
        toml.write_text('connect_timeout = 3\ncommand_timeout = 60\ndefault_user = "pi"\n')
        loader = ConfigLoader(environ={"GUARDIAN_COMMAND_TIMEOUT": "120"})
        settings = loader.load(toml, cli_overrides={"connect_timeout": 9, "command_timeout": None})

        assert settings.connect_timeout == 9
        assert settings.command_timeout == 120
        assert settings.default_user == "pi"
        assert isinstance(settings.command_timeout, float)

    def test_invalid_toml(self, tmp_path):
        toml = tmp_path / "guardian.toml"
        toml.write_text("connect_timeout = = 3")
        with pytest.raises(ConfigError):
            ConfigLoader(environ={}).load(toml)

    def test_invalid_value(self, tmp_path):
        with pytest.raises(ConfigError, match="key_bits"):
            ConfigLoader(environ={"GUARDIAN_KEY_BITS": "lots"}).load()
