import asyncio
import sys
from pathlib import Path

import pytest

from sshkit.config import (
    AddKeysToAgent,
    Config,
    ConfigError,
    HostNotFoundError,
    NoHomeError,
    parse,
    parse_home,
    parse_path,
)

SAMPLE = """\
Host other
    User nobody
    Port 2200

Host example
    User alice
    HostName server.example.com
    Port 2222
    IdentityFile /keys/id_ed25519
    ProxyCommand nc %h %p
    AddKeysToAgent confirm
    Compression yes

Host third
    User carol
"""


@pytest.fixture
def fake_user(monkeypatch):
    monkeypatch.setenv("LOGNAME", "tester")
    monkeypatch.setenv("USER", "tester")
    return "tester"


def test_parse_selected_host(fake_user):
    config = parse(SAMPLE, "example")
    assert config.user == "alice"
    assert config.host_name == "server.example.com"
    assert config.port == 2222
    assert config.identity_file == "/keys/id_ed25519"
    assert config.proxy_command == "nc %h %p"
    assert config.add_keys_to_agent is AddKeysToAgent.CONFIRM


def test_parse_stops_at_next_host(fake_user):
    config = parse(SAMPLE, "other")
    assert config.user == "nobody"
    assert config.port == 2200
    assert config.host_name == "other"
    assert config.identity_file is None
    assert config.proxy_command is None


def test_parse_defaults(fake_user):
    config = parse("Host bare\n", "bare")
    assert config == Config.default("bare")
    assert config.user == fake_user
    assert config.port == 22
    assert config.add_keys_to_agent is AddKeysToAgent.NO


def test_parse_unknown_host():
    with pytest.raises(HostNotFoundError):
        parse(SAMPLE, "missing")
    with pytest.raises(ConfigError):
        parse("", "missing")


def test_parse_keys_are_case_insensitive(fake_user):
    config = parse("HOST box\n  USER bob\n  hostname box.example.com\n", "box")
    assert config.user == "bob"
    assert config.host_name == "box.example.com"


def test_invalid_port_is_ignored(fake_user):
    config = parse("Host box\nPort notanumber\n", "box")
    assert config.port == 22
    config = parse("Host box\nPort 70000\n", "box")
    assert config.port == 22


@pytest.mark.parametrize(
    "value, expected",
    [
        ("yes", AddKeysToAgent.YES),
        ("Ask", AddKeysToAgent.ASK),
        ("CONFIRM", AddKeysToAgent.CONFIRM),
        ("whatever", AddKeysToAgent.NO),
    ],
)
def test_add_keys_to_agent(fake_user, value, expected):
    config = parse(f"Host box\nAddKeysToAgent {value}\n", "box")
    assert config.add_keys_to_agent is expected


def test_identity_file_home_expansion(fake_user, monkeypatch, tmp_path):
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setenv("USERPROFILE", str(tmp_path))
    config = parse("Host box\nIdentityFile ~/.ssh/id_rsa\n", "box")
    assert Path(config.identity_file) == tmp_path / ".ssh" / "id_rsa"


def test_identity_file_without_home(fake_user, monkeypatch):
    def no_home():
        raise RuntimeError("no home")

    monkeypatch.setattr(Path, "home", staticmethod(no_home))
    with pytest.raises(NoHomeError):
        parse("Host box\nIdentityFile ~/.ssh/id_rsa\n", "box")
    with pytest.raises(NoHomeError):
        parse_home("box")


def test_parse_path(fake_user, tmp_path):
    path = tmp_path / "config"
    path.write_text(SAMPLE, encoding="utf-8")
    assert parse_path(path, "example") == parse(SAMPLE, "example")


def test_parse_path_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        parse_path(tmp_path / "absent", "example")


def test_parse_home(fake_user, monkeypatch, tmp_path):
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setenv("USERPROFILE", str(tmp_path))
    ssh_dir = tmp_path / ".ssh"
    ssh_dir.mkdir()
    (ssh_dir / "config").write_text(SAMPLE, encoding="utf-8")
    config = parse_home("example")
    assert config.user == "alice"
    with pytest.raises(HostNotFoundError):
        parse_home("missing")


def test_expanded_proxy_command(fake_user):
    config = parse(SAMPLE, "example")
    assert config.expanded_proxy_command() == "nc server.example.com 2222"
    assert Config.default("plain").expanded_proxy_command() is None


@pytest.mark.asyncio
async def test_stream_over_tcp(fake_user):
    async def handler(reader, writer):
        writer.write(b"SSH-2.0-test\r\n")
        await writer.drain()
        writer.close()
        await writer.wait_closed()

    server = await asyncio.start_server(handler, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    try:
        config = Config.default("127.0.0.1")
        config.port = port
        stream = await config.stream()
        async with stream:
            assert stream.is_child is False
            assert await stream.read(100) == b"SSH-2.0-test\r\n"
    finally:
        server.close()
        await server.wait_closed()


@pytest.mark.asyncio
async def test_stream_through_proxy_command(fake_user):
    script = "import\tsys;sys.stdout.write(sys.argv[1]+':'+sys.argv[2])"
    config = Config.default("example.com")
    config.port = 2222
    config.proxy_command = f"{sys.executable} -c {script} %h %p"
    stream = await config.stream()
    async with stream:
        assert stream.is_child is True
        chunks = []
        while True:
            chunk = await stream.read(1024)
            if not chunk:
                break
            chunks.append(chunk)
    assert b"".join(chunks) == b"example.com:2222"