"""Framing of messages exchanged between the master and its executors.

Each message is a big-endian 64-bit payload length followed by the pickled
payload.  Streams may be sockets or binary file objects.
"""

from __future__ import annotations

import pickle
import struct
from typing import Any

_HEADER = struct.Struct(">Q")


def write_message(stream: Any, obj: Any) -> None:
    """Serialise ``obj`` and write it as a single frame to ``stream``."""
    payload = pickle.dumps(obj, protocol=pickle.HIGHEST_PROTOCOL)
    frame = _HEADER.pack(len(payload)) + payload
    if hasattr(stream, "sendall"):
        stream.sendall(frame)
        return
    stream.write(frame)
    flush = getattr(stream, "flush", None)
    if flush is not None:
        flush()


def read_message(stream: Any) -> Any:
    """Read one frame from ``stream`` and return the object it carries.

    Raises ``EOFError`` if the stream ends before a whole frame is read.
    """
    (length,) = _HEADER.unpack(_read_exact(stream, _HEADER.size))
    return pickle.loads(_read_exact(stream, length))


def _read_exact(stream: Any, size: int) -> bytes:
    read = stream.recv if hasattr(stream, "recv") else stream.read
    buffer = bytearray()
    while len(buffer) < size:
        chunk = read(size - len(buffer))
        if not chunk:
            raise EOFError(f"stream ended after {len(buffer)} of {size} bytes")
        buffer.extend(chunk)
    return bytes(buffer)