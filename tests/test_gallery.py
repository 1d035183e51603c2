"""Tests for the in-memory identity gallery."""

import threading

import numpy as np


def _record(label, *values, record_id="0", extra=None):
    from facematch import IdentityRecord

    return IdentityRecord(
        id=record_id,
        label=label,
        embedding=np.array(values, dtype=np.float32),
        extra=extra,
    )


class TestIdentityGallery:
    """Test cases for IdentityGallery."""

    def test_empty(self):
        """Test a new gallery has no records."""
        from facematch import IdentityGallery

        gallery = IdentityGallery()
        assert len(gallery) == 0
        assert gallery.all_records() == []
        assert gallery.get("anyone") is None

    def test_register_and_snapshot_order(self):
        """Test snapshots list records in registration order."""
        from facematch import IdentityGallery

        gallery = IdentityGallery()
        for label in ("carol", "alice", "bob"):
            gallery.register(label, _record(label, 1.0, 2.0))

        assert [r.label for r in gallery.all_records()] == ["carol", "alice", "bob"]
        assert gallery.labels() == ["carol", "alice", "bob"]
        assert "alice" in gallery

    def test_reregistration_overwrites(self):
        """Test the same label twice leaves exactly the second record."""
        from facematch import IdentityGallery

        gallery = IdentityGallery()
        first = _record("alice", 1.0, 2.0, extra={"v": 1})
        second = _record("alice", 3.0, 4.0, extra={"v": 2})

        gallery.register("alice", first)
        gallery.register("alice", second)

        assert len(gallery) == 1
        assert gallery.get("alice") is second
        assert gallery.all_records() == [second]

    def test_same_pair_twice(self):
        """Test registering an identical pair twice keeps one record."""
        from facematch import IdentityGallery

        gallery = IdentityGallery()
        record = _record("alice", 1.0, 2.0)
        gallery.register("alice", record)
        gallery.register("alice", record)

        assert gallery.all_records() == [record]

    def test_snapshot_is_independent(self):
        """Test a snapshot isn't affected by later registrations."""
        from facematch import IdentityGallery

        gallery = IdentityGallery()
        gallery.register("alice", _record("alice", 1.0))
        snapshot = gallery.all_records()

        gallery.register("bob", _record("bob", 2.0))
        gallery.clear()

        assert [r.label for r in snapshot] == ["alice"]
        assert len(gallery) == 0

    def test_concurrent_registration(self):
        """Test concurrent writers and readers never corrupt the map."""
        from facematch import IdentityGallery

        gallery = IdentityGallery()
        errors = []

        def writer(offset):
            for i in range(200):
                label = f"person_{offset}_{i}"
                gallery.register(label, _record(label, float(i)))

        def reader():
            try:
                for _ in range(200):
                    for record in gallery.all_records():
                        assert record.embedding.shape == (1,)
            except AssertionError as e:
                errors.append(e)

        threads = [threading.Thread(target=writer, args=(n,)) for n in range(4)]
        threads += [threading.Thread(target=reader) for _ in range(2)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert not errors
        assert len(gallery) == 800


class TestIdentityRecord:
    """Test cases for IdentityRecord."""

    def test_embedding_is_read_only_copy(self):
        """Test a record owns an immutable copy of its embedding."""
        source = np.array([1.0, 2.0, 3.0], dtype=np.float32)
        record = _record("alice", *source)

        source[0] = 99.0
        assert record.embedding[0] == 1.0
        assert record.dim == 3
        assert record.embedding.flags.writeable is False
