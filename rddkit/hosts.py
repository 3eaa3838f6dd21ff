"""Loading of the cluster hosts configuration."""

from __future__ import annotations

import ipaddress
import os
import tomllib
from dataclasses import dataclass
from pathlib import Path

from .errors import LoadHostsError, NoHomeError, ParseHostsError

HOSTS_FILE_NAME = "hosts.conf"


def _parse_socket_address(text: object) -> tuple[str, int]:
    if not isinstance(text, str):
        raise TypeError("master must be a string of the form ip:port")
    host, sep, port_text = text.rpartition(":")
    if not sep:
        raise ValueError(f"missing port in {text!r}")
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    address = ipaddress.ip_address(host)
    port = int(port_text)
    if not 0 <= port <= 65535:
        raise ValueError(f"port out of range in {text!r}")
    return str(address), port


@dataclass(frozen=True)
class Hosts:
    """The master's socket address and the slaves, each as ``user@address``."""

    master: tuple[str, int]
    slaves: tuple[str, ...]

    @classmethod
    def load(cls) -> Hosts:
        """Load ``hosts.conf`` from the user's home directory."""
        try:
            home = Path.home()
        except (RuntimeError, KeyError) as exc:
            raise NoHomeError() from exc
        return cls.load_from(home / HOSTS_FILE_NAME)

    @classmethod
    def load_from(cls, path: str | os.PathLike[str]) -> Hosts:
        """Load a hosts file written in TOML from ``path``."""
        try:
            text = Path(path).read_text(encoding="utf-8")
        except OSError as exc:
            raise LoadHostsError(path, exc) from exc
        try:
            data = tomllib.loads(text)
            master = _parse_socket_address(data["master"])
            slaves = data["slaves"]
            if not isinstance(slaves, list) or not all(isinstance(s, str) for s in slaves):
                raise TypeError("slaves must be a list of strings")
        except (tomllib.TOMLDecodeError, KeyError, TypeError, ValueError) as exc:
            raise ParseHostsError(path, exc) from exc
        return cls(master=master, slaves=tuple(slaves))