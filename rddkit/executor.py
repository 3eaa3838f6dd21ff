"""The worker process that runs tasks sent by the master."""

from __future__ import annotations

import logging
import os
import socket
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from .wire import read_message, write_message

logger = logging.getLogger(__name__)

EXIT_SIGNAL_OFFSET = 10
_ACCEPT_POLL = 0.2


class Executor:
    """Runs tasks received on ``port``; listens for the stop signal on ``port + 10``.

    Usable as a context manager, which stops the task server on exit.
    """

    def __init__(self, port: int) -> None:
        self.port = port
        self._stop = threading.Event()
        self._server_thread: threading.Thread | None = None

    def worker(self) -> bool:
        """Start serving tasks in a background thread.

        Each connection carries one task; it is run with attempt id 0 and its
        result is sent back on the same connection.  Returns ``False`` if the
        port could not be bound.
        """
        try:
            listener = socket.create_server(("0.0.0.0", self.port))
        except OSError:
            logger.info("unable to create server in executor for task %s", self.port)
            return False
        logger.info("created server in executor for task %s", self.port)
        listener.settimeout(_ACCEPT_POLL)
        self._stop.clear()
        self._server_thread = threading.Thread(
            target=self._serve, args=(listener,), name=f"executor-{self.port}", daemon=True
        )
        self._server_thread.start()
        return True

    def _serve(self, listener: socket.socket) -> None:
        with listener, ThreadPoolExecutor(max_workers=os.cpu_count() or 1) as pool:
            while not self._stop.is_set():
                try:
                    conn, _ = listener.accept()
                except TimeoutError:
                    continue
                except OSError:
                    continue
                conn.settimeout(None)
                pool.submit(self._run_task, conn)

    def _run_task(self, conn: socket.socket) -> None:
        with conn:
            start = time.perf_counter()
            try:
                task: Any = read_message(conn)
            except Exception as exc:  # noqa: BLE001 - a bad task only ends its connection
                logger.info("problem in getting the task in executor %s: %r", self.port, exc)
                return
            logger.info(
                "task in executor %s %s slave task id",
                self.port,
                getattr(task, "task_id", None),
            )
            logger.info(
                "time taken in server for deserializing:%s %.0f",
                self.port,
                (time.perf_counter() - start) * 1000,
            )
            start = time.perf_counter()
            try:
                result = task.run(0)
            except Exception:
                logger.exception("task failed in executor %s", self.port)
                return
            logger.info(
                "time taken in server for running:%s %.0f",
                self.port,
                (time.perf_counter() - start) * 1000,
            )
            try:
                write_message(conn, result)
            except OSError as exc:
                logger.info("unable to send result to master from %s: %r", self.port, exc)

    def exit_signal(self) -> bool:
        """Block until the master sends a true stop signal on ``port + 10``.

        Returns ``True`` once signalled (the task server is stopped too), and
        ``False`` if the port could not be bound or a signal could not be read.
        """
        signal_port = self.port + EXIT_SIGNAL_OFFSET
        try:
            listener = socket.create_server(("0.0.0.0", signal_port))
        except OSError:
            logger.info("unable to create end signal server in executor for task %s", signal_port)
            return False
        logger.info("created end signal server in executor for task %s", signal_port)
        with listener:
            while True:
                try:
                    conn, _ = listener.accept()
                except OSError:
                    continue
                with conn:
                    logger.info("inside end signal stream")
                    try:
                        signal = read_message(conn)
                    except Exception:  # noqa: BLE001
                        return False
                    logger.info("got end signal inside server")
                    if signal:
                        self._stop.set()
                        return True

    def __enter__(self) -> Executor:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self._stop.set()
        if self._server_thread is not None:
            self._server_thread.join()
            self._server_thread = None