"""Tests for guardian.ssh.credentials."""

import pytest

from guardian.core.exceptions import CredentialUnavailableError
from guardian.ssh.credentials import CredentialResolver, env_key
from guardian.ssh.keys import KeyManager
from guardian.ssh.models import HostTarget

from .conftest import ScriptedPrompts


def make_resolver(paths, environ, prompts=None):
    return CredentialResolver(KeyManager(paths), prompts or ScriptedPrompts(), environ)


def test_env_key_normalises_name():
    assert env_key("NEWHOST_PASSWORD", "edge-box.1") == "NEWHOST_PASSWORD_EDGE_BOX_1"


class TestPassword:
    def test_host_specific_override(self, paths, host):
        resolver = make_resolver(paths, {"NEWHOST_PASSWORD_BOX": "s3cret", "NEWHOST_PASSWORD": "generic"})
        auth = resolver.resolve(host, "password")
        assert auth.kind == "password"
        assert auth.password == "s3cret"
        assert auth.connect_kwargs() == {"password": "s3cret"}

    def test_generic_override(self, paths, host):
        auth = make_resolver(paths, {"NEWHOST_PASSWORD": "generic"}).resolve(host, "password")
        assert auth.password == "generic"

    def test_prompt_when_no_override(self, paths, host):
        prompts = ScriptedPrompts(["typed"])
        auth = make_resolver(paths, {}, prompts).resolve(host, "password")
        assert auth.password == "typed"
        assert "user@10.0.0.5" in prompts.asked[0]

    def test_non_interactive_without_override(self, paths, host):
        resolver = make_resolver(paths, {}, ScriptedPrompts(interactive=False))
        with pytest.raises(CredentialUnavailableError, match="NEWHOST_PASSWORD_BOX"):
            resolver.resolve(host, "password")

    def test_prompt_interrupted(self, paths, host):
        resolver = make_resolver(paths, {}, ScriptedPrompts([KeyboardInterrupt()]))
        with pytest.raises(CredentialUnavailableError):
            resolver.resolve(host, "password")

    def test_forget_drops_password(self, paths, host):
        auth = make_resolver(paths, {"NEWHOST_PASSWORD": "pw"}).resolve(host, "password")
        auth.forget()
        assert auth.password is None
        assert "pw" not in repr(auth)


class TestKey:
    def test_loads_private_key(self, paths, host, fast_keygen, rsa_key):
        KeyManager(paths).ensure_key_pair()
        auth = make_resolver(paths, {}).resolve(host, "key")
        assert auth.kind == "key"
        assert auth.pkey.get_base64() == rsa_key.get_base64()

    def test_missing_key(self, paths, host):
        with pytest.raises(CredentialUnavailableError):
            make_resolver(paths, {}).resolve(host, "key")

    def test_unknown_mode(self, paths, host):
        with pytest.raises(ValueError):
            make_resolver(paths, {}).resolve(host, "kerberos")


class TestElevation:
    def test_override(self, paths):
        target = HostTarget(name="edge-1", address="a", username="u")
        resolver = make_resolver(paths, {"GUARDIAN_SUDO_PASSWORD_EDGE_1": "root-pw"})
        assert resolver.resolve_elevation(target) == "root-pw"

    def test_generic_login_password_not_reused(self, paths, host):
        prompts = ScriptedPrompts(["sudo-pw"])
        resolver = make_resolver(paths, {"NEWHOST_PASSWORD": "login"}, prompts)
        assert resolver.resolve_elevation(host) == "sudo-pw"

    def test_non_interactive(self, paths, host):
        resolver = make_resolver(paths, {}, ScriptedPrompts(interactive=False))
        with pytest.raises(CredentialUnavailableError):
            resolver.resolve_elevation(host)
