"""Exceptions raised by the cluster runtime."""

from __future__ import annotations

import os


class SparkError(Exception):
    """Base class for every error the runtime raises."""


class CommandOutputError(SparkError):
    """An external command could not be run."""

    def __init__(self, command: str, source: BaseException | None = None) -> None:
        super().__init__(f"failed to run {command}")
        self.command = command
        self.source = source


class CurrentBinaryNameError(SparkError):
    """The name of the running program could not be determined."""

    def __init__(self) -> None:
        super().__init__("couldn't determine the current binary's name")


class CurrentBinaryPathError(SparkError):
    """The path of the running program could not be determined."""

    def __init__(self) -> None:
        super().__init__("couldn't determine the path to the current binary")


class CreateLogFileError(SparkError):
    """The log file could not be created."""

    def __init__(self, source: BaseException | None = None) -> None:
        super().__init__("failed to create the log file")
        self.source = source


class CreateTerminalLoggerError(SparkError):
    """The terminal logger could not be created."""

    def __init__(self) -> None:
        super().__init__("failed to create the terminal logger")


class ExecutorPortError(SparkError):
    """The executor port given on the command line is not a number."""

    def __init__(self, source: BaseException | None = None) -> None:
        super().__init__("failed to parse the executor port")
        self.source = source


class LoadHostsError(SparkError):
    """The hosts file could not be read."""

    def __init__(self, path: str | os.PathLike[str], source: BaseException | None = None) -> None:
        super().__init__(f"failed to load hosts file from {os.fspath(path)}")
        self.path = path
        self.source = source


class NoHomeError(SparkError):
    """The user's home directory could not be determined."""

    def __init__(self) -> None:
        super().__init__("failed to determine the home directory")


class OsStringToStringError(SparkError):
    """An operating-system string could not be decoded."""

    def __init__(self, value: object) -> None:
        super().__init__(f"failed to convert {value!r} to a String")
        self.value = value


class ParseHostsError(SparkError):
    """The hosts file is not valid."""

    def __init__(self, path: str | os.PathLike[str], source: BaseException | None = None) -> None:
        super().__init__(f"failed to parse hosts file at {os.fspath(path)}")
        self.path = path
        self.source = source


class PathToStringError(SparkError):
    """A path could not be turned into text."""

    def __init__(self, path: str | os.PathLike[str]) -> None:
        super().__init__(f"failed to convert {os.fspath(path)} to a String")
        self.path = path


class ParseSlaveAddressError(SparkError):
    """A slave address is not of the form ``user@address``."""

    def __init__(self, address: str) -> None:
        super().__init__(f"failed to parse slave address {address}")
        self.address = address