import threading

from rddkit.cache import BoundedMemoryCache


def test_default_capacity():
    cache = BoundedMemoryCache()
    assert cache.new_key_space().capacity == 2000


def test_put_then_get_round_trip():
    space = BoundedMemoryCache().new_key_space()
    assert space.put(1, 0, b"payload") is not None
    assert space.get(1, 0) == b"payload"


def test_put_reports_size():
    space = BoundedMemoryCache().new_key_space()
    assert space.put(0, 0, b"abc") == 40


def test_missing_entry_is_none():
    space = BoundedMemoryCache().new_key_space()
    space.put(1, 0, b"a")
    assert space.get(1, 1) is None
    assert space.get(2, 0) is None


def test_key_spaces_are_isolated():
    cache = BoundedMemoryCache()
    first, second = cache.new_key_space(), cache.new_key_space()
    first.put(5, 0, b"first")
    second.put(5, 0, b"second")
    assert first.get(5, 0) == b"first"
    assert second.get(5, 0) == b"second"
    assert cache.get((first.key_space_id, 5), 0) == b"first"


def test_key_space_ids_unique_across_threads():
    cache = BoundedMemoryCache()
    spaces = []
    lock = threading.Lock()

    def grab():
        for _ in range(50):
            space = cache.new_key_space()
            with lock:
                spaces.append(space)

    threads = [threading.Thread(target=grab) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert sorted(space.key_space_id for space in spaces) == list(range(200))
    assert cache.new_key_space().key_space_id == 200


def test_oversized_entry_rejected():
    space = BoundedMemoryCache(max_bytes=0).new_key_space()
    assert space.put(1, 0, b"x") is None
    assert space.get(1, 0) is None


def test_overwrite_replaces_value():
    space = BoundedMemoryCache().new_key_space()
    space.put(1, 0, b"old")
    space.put(1, 0, b"new")
    assert space.get(1, 0) == b"new"