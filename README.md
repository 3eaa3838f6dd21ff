# rddkit

rddkit provides the lower layers of a small cluster computing engine:

- framing of messages between a master and its executors
- an in-memory cache of serialised partitions, and a tracker that records
  which host has cached which partition
- shuffle dependencies that sort a partition's key/value pairs into one
  bucket per output partition
- the spreading of local files over partitions of similar total size
- an executor process that runs the tasks it is sent
- a command that copies the program to worker hosts and starts executors
  there

It needs nothing beyond the Python standard library (3.11 or later).

## Installation

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## What the package does not do

rddkit has no dataset API. It cannot build a collection, map or group it, or
collect the results. It has no scheduler that splits a job into stages and
tasks, and it has no way to fetch shuffle output from another host. An
executor runs whatever task objects a caller sends it. Those task objects,
and the code that sends them, are up to you.

## Hosts configuration

The cluster layout is read from `hosts.conf` in your home directory. The file
is TOML. `master` is the master's address as `ip:port`, where the IP is a
literal address rather than a host name. `slaves` is a list of
`user@address` entries:

```toml
master = "192.168.0.1:3000"
slaves = ["worker@192.168.0.2", "worker@192.168.0.3"]
```

`rddkit.hosts.Hosts.load()` reads that file. `Hosts.load_from(path)` reads a
file at another path. The result has `master` as an `(ip, port)` tuple and
`slaves` as a tuple of strings.

- A file that cannot be read raises `rddkit.errors.LoadHostsError`.
- A file that is not valid TOML, or has a missing or malformed entry, raises
  `rddkit.errors.ParseHostsError`.

Every error in `rddkit.errors` derives from `SparkError`.

## Command line

```
rddkit
```

This runs as the master, which does the following:

1. It sends INFO logging to the terminal and to `master-<uuid>` in the
   system temporary directory.
2. It reads `hosts.conf`.
3. For each slave, it uses `ssh` to make a directory
   `/tmp/spark-binary-<uuid>` on that host.
4. It uses `scp` to copy the running program (`sys.argv[0]`) into that
   directory.
5. It runs the copy there over `ssh` as `<program> slave <port>`.

Ports start at 10000 and go up by 5000 for each slave. The command prints
each executor's `address:port` and exits. It does not stop the executors; use
`rddkit.deploy.drop_executors` to do that.

```
rddkit slave 10000
```

This runs as an executor. It logs to `executor-<uuid>` in the system
temporary directory. It serves tasks on the given port until it receives a
true stop signal on that port plus 10.

The exit status is 0 on success. On failure it is 1, with `error: <message>`
printed on standard error. A missing or non-numeric port is one such failure.

## Modules

### `rddkit.wire`

`write_message(stream, obj)` pickles `obj`. It then writes a big-endian
64-bit length, followed by the payload. `read_message(stream)` reads one such
frame back. If the stream ends before a whole frame has arrived, it raises
`EOFError`. Both functions accept sockets or binary file objects.

Messages are pickles, so never expose executors or the cache tracker to
untrusted networks.

### `rddkit.job`

A `Job(run_id, job_id)` compares and hashes by `job_id` only. Jobs sort in
descending order of `job_id`.

### `rddkit.aggregator`

An `Aggregator(create_combiner, merge_value, merge_combiners)` holds the
functions that fold the values for a key into a combiner during a shuffle.

### `rddkit.cache`

`BoundedMemoryCache(max_bytes=2000)` stores bytes keyed by
`((key_space_id, dataset_id), partition)`.

- `max_bytes` is the largest single entry it accepts, in megabytes. An
  entry's size is estimated as `len(value) * 8 + 16`. The cache never evicts
  entries.
- `put` returns that estimated size, or `None` if the entry is too large.
- `get` returns the stored bytes, or `None`.
- `new_key_space()` returns a `KeySpace`. Its `get(dataset_id, partition)`,
  `put(dataset_id, partition, value)` and `capacity` all work within its own
  id.

### `rddkit.dependency`

`OneToOneDependency(rdd_base).get_parents(p)` returns `[p]`.

`ShuffleDependency(shuffle_id, is_cogroup, rdd_base, aggregator, partitioner)`
compares, sorts and hashes by `shuffle_id`. Its `do_shuffle_task(rdd_base,
partition, shuffle_cache, server_uri)` works as follows:

1. It reads the `(key, value)` pairs of one input partition, from
   `rdd_base.iterator_any`, or from `cogroup_iterator_any` when
   `is_cogroup` is set.
2. It combines them into one bucket per output partition, using
   `partitioner.get_partition` and `partitioner.num_partitions`.
3. It stores each bucket, pickled as a list of `(key, combiner)` pairs, in
   `shuffle_cache[(shuffle_id, partition, bucket)]`.
4. It returns `server_uri`.

### `rddkit.cache_tracker`

`CacheTrackerState` is the cluster-wide view: which hosts hold each partition
of each registered dataset, and each host's cache capacity and usage.
`handle(message)` applies one of these messages:

- `SlaveCacheStarted`
- `RegisterRdd`
- `AddedToCache`
- `DroppedFromCache`
- `MemoryCacheLost`
- `GetCacheLocations`
- `GetCacheStatus`
- `StopCacheTracker`

It returns a dict for location requests, a list of `(host, capacity, usage)`
for status requests, and `None` for everything else.

`CacheTracker(is_master, master_addr, cache, local_ip)` is a node's handle on
the tracker.

- On the master, it serves the state over TCP on the port after
  `master_addr`'s.
- Every node reports its own cache on construction. It retries until the
  master can be reached.
- `register_rdd` registers each dataset once.
- `get_location_snapshot` and `get_cache_status` query the master.
- `get_or_compute(rdd, split)` returns the cached elements of
  `(rdd.rdd_id, split.index)`. On a miss it calls `rdd.compute(split)` and
  caches the result. It reports a newly cached partition to the master.
  Concurrent requests for the same partition wait for the first one.
- `close()`, or leaving a `with` block, stops the server.

### `rddkit.dag_scheduler`

This module defines the task outcomes `Success`, `FetchFailed`, `TaskError`
and `OtherFailure`. It also defines `CompletionEvent(task, reason, result,
accum_updates)`.

### `rddkit.file_reader`

`LocalFsReaderConfig(path)` names a file or a directory. It has three
setters:

- `filter_extension("csv")` reads only files with that extension, given
  without the dot.
- `expect_directory(bool)` records whether the directory must exist.
- `num_partitions_per_executor(n)` sets the partition count. The default is
  the CPU count.

`make_reader()` returns a `LocalFsReader`. Its `load_local_files()` groups
the files of a directory, in name order, into partitions of similar total
size. The grouping involves some randomness. If there are fewer files than
partitions, the partition count drops to the number of files. If no file
matches, it raises `ValueError`.

`slice_with_set_parts(parts)` wraps each partition in a one-element list
holding a `DistributedLocalReader`. The partition count comes from the
configuration, not from `parts`. Iterating over a `DistributedLocalReader`
yields the bytes of its files, last file first.

```python
from rddkit.file_reader import LocalFsReaderConfig

config = LocalFsReaderConfig("/data/logs")
config.filter_extension("csv")
config.num_partitions_per_executor(4)

reader = config.make_reader()
for chunk in reader.slice_with_set_parts(4):
    for local_reader in chunk:
        for content in local_reader:
            print(len(content))
```

### `rddkit.executor`

`Executor(port)` has two methods:

- `worker()` starts a background server on `port` and returns `False` if the
  port cannot be bound. Each connection carries one pickled task object. The
  server calls its `run(0)` method and sends the result back on the same
  connection.
- `exit_signal()` blocks until a true value arrives on `port + 10`.

Leaving a `with` block stops the task server.

### `rddkit.deploy`

This module holds the functions behind the `rddkit` command:

- `parse_slave_address("user@host")` returns `"host"`.
- `initialize_loggers(path)` sets up the file and terminal logging.
- `deploy_executors(hosts, binary_path, base_port=10000)` starts the
  executors and returns their `(address, port)` pairs.
- `drop_executors(address_map)` sends the stop signal to each executor and
  returns the ones it could not reach.
- `run_slave(port)` runs an executor.
- `main(argv=None)` is the command's entry point.