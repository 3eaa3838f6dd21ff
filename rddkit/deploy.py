"""Starting executors on the slave hosts and stopping them again."""

from __future__ import annotations

import logging
import os
import socket
import subprocess
import sys
import tempfile
import uuid
from pathlib import Path
from typing import Iterable, Protocol, Sequence

from .errors import (
    CommandOutputError,
    CreateLogFileError,
    CurrentBinaryNameError,
    CurrentBinaryPathError,
    ExecutorPortError,
    ParseSlaveAddressError,
    SparkError,
)
from .executor import EXIT_SIGNAL_OFFSET, Executor
from .hosts import Hosts
from .wire import write_message

logger = logging.getLogger(__name__)

DEFAULT_BASE_PORT = 10000
PORT_STEP = 5000
REMOTE_DIR_ROOT = "/tmp"
_HANDLER_NAME = "rddkit"
_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


class _HasSlaves(Protocol):
    slaves: Sequence[str]


def parse_slave_address(address: str) -> str:
    """Return the address part of ``user@address``."""
    parts = address.split("@")
    if len(parts) < 2:
        raise ParseSlaveAddressError(address)
    return parts[1]


def initialize_loggers(file_path: str | os.PathLike[str]) -> list[logging.Handler]:
    """Send INFO logging to ``file_path`` and to the terminal.

    Handlers from an earlier call are replaced.  Returns the new handlers.
    """
    try:
        file_handler = logging.FileHandler(file_path, encoding="utf-8")
    except OSError as exc:
        raise CreateLogFileError(exc) from exc
    term_handler = logging.StreamHandler()
    formatter = logging.Formatter(_LOG_FORMAT)
    handlers: list[logging.Handler] = [file_handler, term_handler]
    root = logging.getLogger()
    for old in [h for h in root.handlers if h.get_name() == _HANDLER_NAME]:
        root.removeHandler(old)
        old.close()
    for handler in handlers:
        handler.set_name(_HANDLER_NAME)
        handler.setLevel(logging.INFO)
        handler.setFormatter(formatter)
        root.addHandler(handler)
    root.setLevel(logging.INFO)
    return handlers


def _run(args: list[str], command: str) -> None:
    try:
        subprocess.run(args, capture_output=True)
    except OSError as exc:
        raise CommandOutputError(command, exc) from exc


def deploy_executors(
    hosts: _HasSlaves,
    binary_path: str | os.PathLike[str],
    base_port: int = DEFAULT_BASE_PORT,
) -> list[tuple[str, int]]:
    """Copy ``binary_path`` to every slave and start it there as an executor.

    Each slave gets its own port, starting at ``base_port`` and going up by
    5000.  Returns the ``(address, port)`` of every executor.
    """
    binary = Path(binary_path)
    binary_name = binary.name
    if not binary_name:
        raise CurrentBinaryNameError()
    binary_str = os.fspath(binary)

    address_map: list[tuple[str, int]] = []
    port = base_port
    for address in hosts.slaves:
        logger.info("deploying executor at address %s", address)
        address_map.append((parse_slave_address(address), port))
        local_dir = f"{REMOTE_DIR_ROOT}/spark-binary-{uuid.uuid4()}"
        _run(["ssh", address, "mkdir", local_dir], "ssh mkdir")
        _run(["scp", binary_str, f"{address}:{local_dir}/{binary_name}"], "scp executor")
        remote_binary = f"{local_dir}/{binary_name}"
        logger.info("remote path %s", remote_binary)
        try:
            subprocess.Popen(["ssh", address, remote_binary, "slave", str(port)])
        except OSError as exc:
            raise CommandOutputError("ssh run", exc) from exc
        port += PORT_STEP
    return address_map


def drop_executors(address_map: Iterable[tuple[str, int]]) -> list[tuple[str, int]]:
    """Send the stop signal to every executor; return those that could not be reached."""
    unreachable: list[tuple[str, int]] = []
    for address, port in address_map:
        try:
            with socket.create_connection((address, port + EXIT_SIGNAL_OFFSET)) as conn:
                write_message(conn, True)
        except OSError:
            logger.error(
                "Failed to connect to %s:%s in order to stop its executor", address, port
            )
            unreachable.append((address, port))
    return unreachable


def run_slave(port: str | int) -> None:
    """Run an executor on ``port`` until the master tells it to stop."""
    try:
        port_number = int(port)
    except (TypeError, ValueError) as exc:
        raise ExecutorPortError(exc) from exc
    if not 0 <= port_number <= 65535:
        raise ExecutorPortError(ValueError(f"port {port_number} out of range"))
    initialize_loggers(Path(tempfile.gettempdir()) / f"executor-{uuid.uuid4()}")
    logger.info("started client")
    executor = Executor(port_number)
    with executor:
        executor.worker()
        logger.info("initiated executor worker exit")
        executor.exit_signal()
        logger.info("got executor end signal")


def main(argv: Sequence[str] | None = None) -> int:
    """Run as a slave (``slave PORT``) or deploy executors to every slave host."""
    args = list(sys.argv[1:] if argv is None else argv)
    try:
        if args and args[0] == "slave":
            if len(args) < 2:
                raise ExecutorPortError(IndexError("missing executor port"))
            run_slave(args[1])
            return 0
        initialize_loggers(Path(tempfile.gettempdir()) / f"master-{uuid.uuid4()}")
        if not sys.argv or not sys.argv[0]:
            raise CurrentBinaryPathError()
        binary_path = Path(sys.argv[0]).resolve()
        address_map = deploy_executors(Hosts.load(), binary_path, DEFAULT_BASE_PORT)
        for address, port in address_map:
            print(f"{address}:{port}")
        return 0
    except SparkError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1