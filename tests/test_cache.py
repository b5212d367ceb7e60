"""
Tests for the Source Cache module.
"""

import json
import threading

import pytest

from cloudwarden.core.cache import CacheEntry, SourceCache, SourceTrace, add_source
from cloudwarden.core.exceptions import CacheFrozenError, SnapshotError


class TestCacheEntry:
    """Tests for CacheEntry."""

    def test_ok_entry(self):
        """Test an entry with data is ok."""
        assert CacheEntry(data=[]).ok

    def test_error_entry(self):
        """Test an entry with an error is not ok."""
        entry = CacheEntry(error="AccessDenied")
        assert not entry.ok
        assert entry.error_message == "AccessDenied"

    def test_missing_data_is_error(self):
        """Test an entry with neither data nor error is treated as failed."""
        entry = CacheEntry()
        assert not entry.ok
        assert entry.error_message == "Unable to obtain data"

    def test_error_dict_message(self):
        """Test structured errors expose their message."""
        entry = CacheEntry(error={"code": "Throttling", "message": "Rate exceeded"})
        assert entry.error_message == "Rate exceeded"

    def test_to_dict(self):
        """Test snapshot leaf shapes."""
        assert CacheEntry(data=[1]).to_dict() == {"data": [1]}
        assert CacheEntry(error="boom").to_dict() == {"err": "boom"}


class TestSourceCache:
    """Tests for SourceCache."""

    def test_absent_vs_error(self):
        """Test absent keys return None while errored keys return an entry."""
        cache = SourceCache()
        cache.put("ec2", "describeSecurityGroups", "us-east-1", error="AccessDenied")

        assert cache.lookup("ec2", "describeSecurityGroups", "eu-west-1") is None
        entry = cache.lookup("ec2", "describeSecurityGroups", "us-east-1")
        assert entry is not None
        assert not entry.ok

    def test_frozen_rejects_writes(self):
        """Test put raises after freeze."""
        cache = SourceCache().freeze()
        assert cache.frozen
        with pytest.raises(CacheFrozenError) as exc_info:
            cache.put("ec2", "describeSecurityGroups", "us-east-1", data=[])
        assert exc_info.value.details["key"] == "ec2/describeSecurityGroups/us-east-1"

    def test_frozen_allows_reads(self):
        """Test lookups keep working once frozen."""
        cache = SourceCache()
        cache.put("ec2", "describeSecurityGroups", "us-east-1", data=[{"GroupId": "sg-1"}])
        cache.freeze()
        assert cache.lookup("ec2", "describeSecurityGroups", "us-east-1").data == [
            {"GroupId": "sg-1"}
        ]

    def test_scopes_and_len(self):
        """Test scope listing and size."""
        cache = SourceCache()
        cache.put("ec2", "describeSecurityGroups", "us-west-2", data=[])
        cache.put("ec2", "describeSecurityGroups", "us-east-1", data=[])
        cache.put("lambda", "listFunctions", "us-east-1", data=[])

        assert cache.scopes("ec2", "describeSecurityGroups") == ["us-east-1", "us-west-2"]
        assert len(cache) == 3
        assert ("lambda", "listFunctions", "us-east-1") in cache

    def test_snapshot_round_trip(self):
        """Test to_dict/from_dict preserve data and errors."""
        cache = SourceCache()
        cache.put("ec2", "describeSecurityGroups", "us-east-1", data=[{"GroupId": "sg-1"}])
        cache.put("ec2", "describeSecurityGroups", "eu-west-1", error="AccessDenied")

        restored = SourceCache.from_dict(cache.to_dict())

        assert restored.lookup("ec2", "describeSecurityGroups", "us-east-1").data == [
            {"GroupId": "sg-1"}
        ]
        assert restored.lookup("ec2", "describeSecurityGroups", "eu-west-1").error == (
            "AccessDenied"
        )

    def test_from_dict_accepts_error_key(self):
        """Test the long 'error' leaf key is accepted."""
        cache = SourceCache.from_dict(
            {"lambda": {"listFunctions": {"us-east-1": {"error": "denied"}}}}
        )
        assert cache.lookup("lambda", "listFunctions", "us-east-1").error_message == "denied"

    @pytest.mark.parametrize(
        "snapshot",
        [
            [],
            {"ec2": []},
            {"ec2": {"describeSecurityGroups": []}},
            {"ec2": {"describeSecurityGroups": {"us-east-1": []}}},
        ],
    )
    def test_from_dict_rejects_bad_shapes(self, snapshot):
        """Test malformed snapshots raise SnapshotError."""
        with pytest.raises(SnapshotError):
            SourceCache.from_dict(snapshot)

    def test_load(self, tmp_path):
        """Test loading a JSON snapshot file."""
        path = tmp_path / "snapshot.json"
        path.write_text(
            json.dumps({"ec2": {"describeSecurityGroups": {"us-east-1": {"data": []}}}})
        )

        cache = SourceCache.load(path)

        assert not cache.frozen
        assert cache.lookup("ec2", "describeSecurityGroups", "us-east-1").ok

    def test_load_missing_file(self, tmp_path):
        """Test a missing file raises SnapshotError."""
        with pytest.raises(SnapshotError):
            SourceCache.load(tmp_path / "missing.json")

    def test_load_invalid_json(self, tmp_path):
        """Test invalid JSON raises SnapshotError."""
        path = tmp_path / "broken.json"
        path.write_text("{not json")
        with pytest.raises(SnapshotError):
            SourceCache.load(path)


class TestSourceTrace:
    """Tests for SourceTrace and add_source."""

    def test_add_source_records_entry(self):
        """Test consulted entries appear in the trace."""
        cache = SourceCache()
        cache.put("ec2", "describeSecurityGroups", "us-east-1", data=[])
        trace = SourceTrace()

        entry = add_source(cache, trace, ("ec2", "describeSecurityGroups", "us-east-1"))

        assert entry.ok
        assert trace.as_dict() == {
            "ec2": {"describeSecurityGroups": {"us-east-1": entry}}
        }

    def test_absent_lookups_left_out(self):
        """Test absent keys are not reported in the trace."""
        trace = SourceTrace()
        assert add_source(SourceCache(), trace, ("ec2", "describeSecurityGroups", "x")) is None
        assert trace.as_dict() == {"ec2": {"describeSecurityGroups": {}}}

    def test_concurrent_records(self):
        """Test concurrent scopes can record into one trace."""
        cache = SourceCache()
        regions = [f"region-{i}" for i in range(50)]
        for region in regions:
            cache.put("ec2", "describeSecurityGroups", region, data=[])
        cache.freeze()
        trace = SourceTrace()

        threads = [
            threading.Thread(
                target=add_source, args=(cache, trace, ("ec2", "describeSecurityGroups", r))
            )
            for r in regions
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert sorted(trace.as_dict()["ec2"]["describeSecurityGroups"]) == sorted(regions)
