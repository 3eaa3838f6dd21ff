from unittest import mock

import pytest

from rddkit.errors import LoadHostsError, NoHomeError, ParseHostsError
from rddkit.hosts import Hosts


def test_missing_hosts_file():
    with pytest.raises(LoadHostsError):
        Hosts.load_from("/does_not_exist")


def test_invalid_hosts_file(tmp_path):
    path = tmp_path / "hosts.conf"
    path.write_text("invalid data")
    with pytest.raises(ParseHostsError):
        Hosts.load_from(path)


def test_valid_hosts_file(tmp_path):
    path = tmp_path / "hosts.conf"
    path.write_text('master = "127.0.0.1:3000"\nslaves = ["worker@192.168.0.2", "worker@192.168.0.3"]\n')
    hosts = Hosts.load_from(path)
    assert hosts.master == ("127.0.0.1", 3000)
    assert hosts.slaves == ("worker@192.168.0.2", "worker@192.168.0.3")


def test_ipv6_master(tmp_path):
    path = tmp_path / "hosts.conf"
    path.write_text('master = "[::1]:3000"\nslaves = []\n')
    assert Hosts.load_from(path).master == ("::1", 3000)


@pytest.mark.parametrize(
    "content",
    [
        'slaves = []\n',
        'master = "127.0.0.1:3000"\n',
        'master = "127.0.0.1"\nslaves = []\n',
        'master = "localhost:3000"\nslaves = []\n',
        'master = "127.0.0.1:99999"\nslaves = []\n',
        'master = "127.0.0.1:3000"\nslaves = [1, 2]\n',
    ],
)
def test_bad_contents_are_parse_errors(tmp_path, content):
    path = tmp_path / "hosts.conf"
    path.write_text(content)
    with pytest.raises(ParseHostsError):
        Hosts.load_from(path)


def test_load_reads_from_home(tmp_path, monkeypatch):
    (tmp_path / "hosts.conf").write_text('master = "10.0.0.1:4000"\nslaves = ["user@10.0.0.2"]\n')
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setenv("USERPROFILE", str(tmp_path))
    hosts = Hosts.load()
    assert hosts.master == ("10.0.0.1", 4000)
    assert hosts.slaves == ("user@10.0.0.2",)


def test_load_without_home():
    with mock.patch("rddkit.hosts.Path.home", side_effect=RuntimeError("no home")):
        with pytest.raises(NoHomeError):
            Hosts.load()