"""Reading host entries from an OpenSSH-style client configuration file."""

from __future__ import annotations

import asyncio
import getpass
import logging
import re
import socket
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from sshkit.proxy import Stream

logger = logging.getLogger(__name__)

_PORT_RE = re.compile(r"\+?[0-9]+")


class ConfigError(Exception):
    """Base class for configuration errors."""


class HostNotFoundError(ConfigError):
    """The requested host has no entry in the configuration."""

    def __init__(self) -> None:
        super().__init__("Host not found")


class NoHomeError(ConfigError):
    """The user's home directory could not be determined."""

    def __init__(self) -> None:
        super().__init__("No home directory")


class AddKeysToAgent(Enum):
    YES = "yes"
    CONFIRM = "confirm"
    ASK = "ask"
    NO = "no"


def _home_dir() -> Path:
    try:
        return Path.home()
    except (RuntimeError, KeyError) as exc:
        raise NoHomeError() from exc


@dataclass
class Config:
    """Connection settings for one host."""

    user: str
    host_name: str
    port: int = 22
    identity_file: str | None = None
    proxy_command: str | None = None
    add_keys_to_agent: AddKeysToAgent = AddKeysToAgent.NO

    @classmethod
    def default(cls, host_name: str) -> Config:
        """Settings for ``host_name`` as the current user on port 22."""
        return cls(user=getpass.getuser(), host_name=host_name)

    def expanded_proxy_command(self) -> str | None:
        """The proxy command with ``%h`` and ``%p`` filled in, if there is one."""
        if self.proxy_command is None:
            return None
        return self.proxy_command.replace("%h", self.host_name).replace(
            "%p", str(self.port)
        )

    async def stream(self) -> Stream:
        """Open a stream to the host, through the proxy command if one is set."""
        command = self.expanded_proxy_command()
        if command is not None:
            self.proxy_command = command
            cmd, *args = command.split(" ")
            return await Stream.proxy_command(cmd, args)
        loop = asyncio.get_running_loop()
        infos = await loop.getaddrinfo(
            self.host_name, self.port, type=socket.SOCK_STREAM
        )
        if not infos:
            raise OSError(f"no address found for {self.host_name}")
        sockaddr = infos[0][4]
        return await Stream.tcp_connect((sockaddr[0], sockaddr[1]))


def _parse_port(value: str) -> int | None:
    if not _PORT_RE.fullmatch(value):
        return None
    port = int(value)
    return port if port <= 0xFFFF else None


def _parse_add_keys(value: str) -> AddKeysToAgent:
    lowered = value.strip().lower()
    for choice in (AddKeysToAgent.YES, AddKeysToAgent.CONFIRM, AddKeysToAgent.ASK):
        if lowered == choice.value:
            return choice
    return AddKeysToAgent.NO


def parse(text: str, host: str) -> Config:
    """Return the settings of the first ``Host`` entry named exactly ``host``."""
    config: Config | None = None
    for raw in text.splitlines():
        line = raw.strip()
        n = line.find(" ")
        if n < 0:
            continue
        key, value = line[:n], line[n:]
        lower = key.lower()
        if config is None:
            if lower == "host" and value.lstrip() == host:
                config = Config.default(host)
            continue
        if lower == "host":
            break
        if lower == "user":
            config.user = value.lstrip()
        elif lower == "hostname":
            config.host_name = value.lstrip()
        elif lower == "port":
            port = _parse_port(value.lstrip())
            if port is not None:
                config.port = port
        elif lower == "identityfile":
            ident = value.lstrip()
            if ident.startswith("~/"):
                config.identity_file = str(_home_dir() / ident[2:])
            else:
                config.identity_file = ident
        elif lower == "proxycommand":
            config.proxy_command = value.lstrip()
        elif lower == "addkeystoagent":
            config.add_keys_to_agent = _parse_add_keys(value)
        else:
            logger.debug("ignoring configuration key %r", lower)
    if config is None:
        raise HostNotFoundError()
    return config


def parse_path(path: str | Path, host: str) -> Config:
    """Read the configuration file at ``path`` and look up ``host``."""
    with open(path, encoding="utf-8") as f:
        text = f.read()
    return parse(text, host)


def parse_home(host: str) -> Config:
    """Look up ``host`` in ``~/.ssh/config``."""
    return parse_path(_home_dir() / ".ssh" / "config", host)