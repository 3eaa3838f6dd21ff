import pytest

from rddkit.errors import (
    CommandOutputError,
    CreateLogFileError,
    CreateTerminalLoggerError,
    CurrentBinaryNameError,
    CurrentBinaryPathError,
    ExecutorPortError,
    LoadHostsError,
    NoHomeError,
    OsStringToStringError,
    ParseHostsError,
    ParseSlaveAddressError,
    PathToStringError,
    SparkError,
)


def test_command_output_message_and_source():
    cause = OSError("boom")
    err = CommandOutputError("ssh mkdir", cause)
    assert str(err) == "failed to run ssh mkdir"
    assert err.command == "ssh mkdir"
    assert err.source is cause


@pytest.mark.parametrize(
    "factory, message",
    [
        (CurrentBinaryNameError, "couldn't determine the current binary's name"),
        (CurrentBinaryPathError, "couldn't determine the path to the current binary"),
        (CreateTerminalLoggerError, "failed to create the terminal logger"),
        (NoHomeError, "failed to determine the home directory"),
        (CreateLogFileError, "failed to create the log file"),
        (ExecutorPortError, "failed to parse the executor port"),
    ],
)
def test_fixed_messages(factory, message):
    assert str(factory()) == message


def test_executor_port_keeps_parse_error():
    try:
        int("not-a-port")
    except ValueError as exc:
        err = ExecutorPortError(exc)
    assert err.source.args == ("invalid literal for int() with base 10: 'not-a-port'",)


def test_hosts_errors_mention_path(tmp_path):
    path = tmp_path / "hosts.conf"
    load = LoadHostsError(path)
    parse = ParseHostsError(path)
    assert str(path) in str(load)
    assert str(load).startswith("failed to load hosts file from")
    assert str(parse).startswith("failed to parse hosts file at")
    assert parse.path == path


def test_slave_address_and_strings():
    assert str(ParseSlaveAddressError("nohost")).endswith("nohost")
    assert "b'x'" in str(OsStringToStringError(b"x"))
    assert str(PathToStringError("/tmp/a")) == "failed to convert /tmp/a to a String"


def test_all_share_base_class():
    err = ParseSlaveAddressError("nohost")
    assert err.address == "nohost"
    assert str(err) == "failed to parse slave address nohost"
    classes = (
        CommandOutputError,
        CreateLogFileError,
        CreateTerminalLoggerError,
        CurrentBinaryNameError,
        CurrentBinaryPathError,
        ExecutorPortError,
        LoadHostsError,
        NoHomeError,
        OsStringToStringError,
        ParseHostsError,
        ParseSlaveAddressError,
        PathToStringError,
    )
    assert [cls for cls in classes if not issubclass(cls, SparkError)] == []