"""Tests for guardian.domain - host and deploy services over fake sessions."""

import pytest

from guardian.adapters.config.loader import Settings
from guardian.core.exceptions import ConfigError, HostExistsError, HostNotFoundError, RemoteCommandError
from guardian.domain.deploy import DeployService
from guardian.domain.hosts import HostService, authorize_key_commands
from guardian.ssh.trust import AutoAcceptPolicy

from .conftest import FakeChannel, FakeSession, FakeSFTP, ScriptedPrompts

SUDO_PROMPT = b"[sudo] password for user: "


class SessionFactory:
    """Hands out FakeSessions preloaded with scripted channels."""

    def __init__(self, channels=None, sftp=None):
        self.channels = list(channels or [])
        self.sftp = sftp
        self.sessions = []

    def __call__(self, host, auth, trust_store, timeout):
        session = FakeSession(host, auth, trust_store, timeout, channels=self.channels, sftp=self.sftp)
        self.sessions.append(session)
        return session


@pytest.fixture
def environ():
    return {"NEWHOST_PASSWORD_BOX": "login-pw", "GUARDIAN_SUDO_PASSWORD_BOX": "sudo-pw"}


def make_service(paths, environ, factory, prompts=None):
    return HostService(
        paths,
        Settings(connect_timeout=4, command_timeout=30),
        prompts or ScriptedPrompts(interactive=False),
        environ=environ,
        policy=AutoAcceptPolicy(),
        session_factory=factory,
    )


def test_authorize_key_commands_quote_key():
    commands = authorize_key_commands("ssh-rsa AAAA guardian@x")
    assert commands[-1] == (
        "(grep -qxF 'ssh-rsa AAAA guardian@x' ~/.ssh/authorized_keys"
        " || echo 'ssh-rsa AAAA guardian@x' >> ~/.ssh/authorized_keys)"
    )


class TestHostService:
    def test_add_host_pushes_key_and_registers(self, paths, environ, fast_keygen):
        channel = FakeChannel()
        factory = SessionFactory([channel])
        service = make_service(paths, environ, factory)

        host = service.add_host("box", "10.0.0.5", "user", 22)

        session = factory.sessions[0]
        assert session.auth.kind == "password"
        assert session.timeout == 4
        assert session.connected and session.closed
        assert service.key_manager.public_key_text() in channel.command
        assert channel.command.startswith("mkdir -p ~/.ssh && chmod 700 ~/.ssh")
        assert service.registry.find("box") == host
        assert paths.host_data("box").is_dir()

    def test_add_host_with_key_auth(self, paths, environ, fast_keygen):
        factory = SessionFactory([FakeChannel()])
        make_service(paths, environ, factory).add_host("box", "10.0.0.5", "user", 22, no_password=True)
        assert factory.sessions[0].auth.kind == "key"

    def test_add_host_not_registered_when_push_fails(self, paths, environ, fast_keygen):
        factory = SessionFactory([FakeChannel([b"denied\n"], exit_code=1)])
        service = make_service(paths, environ, factory)
        with pytest.raises(RemoteCommandError):
            service.add_host("box", "10.0.0.5", "user", 22)
        assert service.registry.find("box") is None
        assert not paths.host_data("box").exists()
        assert factory.sessions[0].closed

    def test_add_existing_host(self, paths, environ, fast_keygen):
        service = make_service(paths, environ, SessionFactory())
        service.add_host("box", "10.0.0.5", "user", 22)
        with pytest.raises(HostExistsError):
            service.add_host("box", "10.0.0.6", "user", 22)

    def test_update_host(self, paths, environ, fast_keygen):
        service = make_service(paths, environ, SessionFactory())
        service.add_host("box", "10.0.0.5", "user", 22)
        updated = service.update_host("box", address="10.0.0.9", port=2222)
        assert updated.address == "10.0.0.9"
        assert updated.port == 2222
        assert updated.username == "user"
        assert service.registry.get("box").address == "10.0.0.9"

    def test_update_unknown_host(self, paths, environ):
        with pytest.raises(HostNotFoundError):
            make_service(paths, environ, SessionFactory()).update_host("ghost")

    def test_run_command_batch(self, paths, environ, fast_keygen):
        factory = SessionFactory([FakeChannel(), FakeChannel([b"up 3 days\n"])])
        service = make_service(paths, environ, factory)
        service.add_host("box", "10.0.0.5", "user", 22)

        result = service.run_command("box", "uptime")
        assert result.output == "up 3 days\n"
        assert factory.sessions[1].auth.kind == "key"

    def test_run_command_with_sudo(self, paths, environ, fast_keygen):
        relay = FakeChannel([SUDO_PROMPT])
        factory = SessionFactory([FakeChannel(), relay])
        service = make_service(paths, environ, factory)
        service.add_host("box", "10.0.0.5", "user", 22)

        service.run_command("box", "systemctl restart e2guardian", sudo=True)
        assert relay.sent == [b"sudo-pw\n"]
        assert relay.command.endswith("sudo systemctl restart e2guardian")

    def test_run_command_on_selected_target(self, paths, environ, fast_keygen):
        factory = SessionFactory([FakeChannel(), FakeChannel()])
        service = make_service(paths, environ, factory)
        service.add_host("box", "10.0.0.5", "user", 22)
        service.select_target("box")
        service.run_command(None, "true")
        assert factory.sessions[1].host.name == "box"

    def test_each_operation_opens_its_own_session(self, paths, environ, fast_keygen):
        factory = SessionFactory()
        service = make_service(paths, environ, factory)
        service.add_host("box", "10.0.0.5", "user", 22)
        service.test_host("box")
        service.test_host("box")
        assert len(factory.sessions) == 3
        assert all(s.closed for s in factory.sessions)

    def test_push(self, paths, environ, fast_keygen, tmp_path, remote_root):
        sftp = FakeSFTP(remote_root)
        service = make_service(paths, environ, SessionFactory(sftp=sftp))
        service.add_host("box", "10.0.0.5", "user", 22)
        src = tmp_path / "blocklist.txt"
        src.write_text("example.com\n")
        (remote_root / "etc").mkdir()

        service.push("box", src, "/etc/blocklist.txt")
        assert (remote_root / "etc" / "blocklist.txt").read_text() == "example.com\n"
        assert sftp.closed

    def test_reset(self, paths, environ, fast_keygen):
        service = make_service(paths, environ, SessionFactory())
        service.add_host("box", "10.0.0.5", "user", 22)
        service.select_target("box")
        service.reset()
        assert not paths.private_key.exists()
        assert service.list_hosts() == []
        assert service.show_target() is None

    def test_delete_host(self, paths, environ, fast_keygen):
        service = make_service(paths, environ, SessionFactory())
        service.add_host("box", "10.0.0.5", "user", 22)
        assert service.delete_host("box") is True
        assert service.delete_host("box") is False


class TestDeployService:
    @pytest.fixture
    def chart(self, tmp_path):
        chart = tmp_path / "guardian-angel"
        (chart / "templates").mkdir(parents=True)
        (chart / "Chart.yaml").write_text("name: guardian-angel\n")
        (chart / "templates" / "deployment.yaml").write_text("kind: Deployment\n")
        return chart

    def test_deploy_uploads_chart_and_runs_helm(self, paths, environ, fast_keygen, chart, remote_root):
        helm = FakeChannel([b"Release upgraded\n"])
        factory = SessionFactory([FakeChannel(), helm], sftp=FakeSFTP(remote_root))
        service = make_service(paths, environ, factory)
        service.add_host("box", "10.0.0.5", "user", 22)

        result = DeployService(service).deploy("box", chart, release="angel", namespace="filter")

        uploaded = remote_root / "home" / "user" / ".guardian" / "charts" / "guardian-angel"
        assert (uploaded / "templates" / "deployment.yaml").read_text() == "kind: Deployment\n"
        assert helm.command == (
            "helm upgrade --install angel /home/user/.guardian/charts/guardian-angel"
            " --namespace filter --create-namespace"
        )
        assert result.output == "Release upgraded\n"
        assert len(factory.sessions) == 2

    def test_deploy_with_sudo(self, paths, environ, fast_keygen, chart, remote_root):
        helm = FakeChannel([SUDO_PROMPT])
        factory = SessionFactory([FakeChannel(), helm], sftp=FakeSFTP(remote_root))
        service = make_service(paths, environ, factory)
        service.add_host("box", "10.0.0.5", "user", 22)

        DeployService(service).deploy("box", chart, sudo=True)
        assert helm.sent == [b"sudo-pw\n"]

    def test_deploy_rejects_non_chart(self, paths, environ, tmp_path):
        service = make_service(paths, environ, SessionFactory())
        with pytest.raises(ConfigError):
            DeployService(service).deploy("box", tmp_path)

    def test_status_does_not_raise_on_failure(self, paths, environ, fast_keygen):
        factory = SessionFactory([FakeChannel(), FakeChannel([b"release: not found\n"], exit_code=1)])
        service = make_service(paths, environ, factory)
        service.add_host("box", "10.0.0.5", "user", 22)

        result = DeployService(service).status("box")
        assert result.exit_code == 1
