import random
import socket
import threading
import time

import pytest

from rddkit.executor import EXIT_SIGNAL_OFFSET, Executor
from rddkit.wire import read_message, write_message


class _SquareTask:
    def __init__(self, value):
        self.value = value
        self.task_id = value

    def run(self, attempt_id):
        return (attempt_id, self.value * self.value)


class _FailingTask:
    task_id = 99

    def run(self, attempt_id):
        raise RuntimeError("boom")


def _free_port():
    for _ in range(200):
        port = random.randint(20000, 50000)
        try:
            with socket.create_server(("0.0.0.0", port)), socket.create_server(
                ("0.0.0.0", port + EXIT_SIGNAL_OFFSET)
            ):
                return port
        except OSError:
            continue
    raise RuntimeError("no free port")


def _connect(port, timeout=5.0):
    deadline = time.monotonic() + timeout
    while True:
        try:
            return socket.create_connection(("127.0.0.1", port), timeout=timeout)
        except OSError:
            if time.monotonic() > deadline:
                raise
            time.sleep(0.02)


def _send_task(port, task):
    with _connect(port) as conn:
        write_message(conn, task)
        return read_message(conn)


def test_worker_runs_task_with_attempt_zero():
    port = _free_port()
    with Executor(port) as executor:
        assert executor.worker() is True
        assert _send_task(port, _SquareTask(7)) == (0, 49)


def test_worker_serves_many_connections():
    port = _free_port()
    with Executor(port) as executor:
        executor.worker()
        results = [_send_task(port, _SquareTask(n)) for n in range(5)]
    assert results == [(0, n * n) for n in range(5)]


def test_failing_task_closes_connection_without_reply():
    port = _free_port()
    with Executor(port) as executor:
        executor.worker()
        with pytest.raises(EOFError):
            _send_task(port, _FailingTask())
        assert _send_task(port, _SquareTask(3)) == (0, 9)


def test_worker_reports_busy_port():
    port = _free_port()
    with socket.create_server(("0.0.0.0", port)):
        assert Executor(port).worker() is False


def test_exit_signal_ignores_false_and_stops_on_true():
    port = _free_port()
    executor = Executor(port)
    outcome = []
    thread = threading.Thread(target=lambda: outcome.append(executor.exit_signal()), daemon=True)
    thread.start()
    with _connect(port + EXIT_SIGNAL_OFFSET) as conn:
        write_message(conn, False)
    time.sleep(0.1)
    assert thread.is_alive()
    with _connect(port + EXIT_SIGNAL_OFFSET) as conn:
        write_message(conn, True)
    thread.join(timeout=5)
    assert not thread.is_alive()
    assert outcome == [True]


def test_exit_signal_reports_busy_port():
    port = _free_port()
    with socket.create_server(("0.0.0.0", port + EXIT_SIGNAL_OFFSET)):
        assert Executor(port).exit_signal() is False