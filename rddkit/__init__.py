"""Building blocks for a small cluster computing engine: message framing, partition caching
and tracking, shuffle buckets, local file partitioning, task executors and deployment."""

__version__ = "0.1.0"