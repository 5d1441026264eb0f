"""Tests for building and resolving the array topology."""

from __future__ import annotations

from array_health.models import DeviceRecord, DeviceTopology, Operation
from array_health.topology import build_requested, resolve


class TestDeviceTopology:
    def test_physical_logical_and_untracked(self):
        topology = DeviceTopology()
        sda = topology.add(DeviceRecord(name="WDC", file="/dev/sda"))
        topology.add(DeviceRecord(name="Spare", file="/dev/sdc"))
        topology.add(DeviceRecord(name="d1", file="/dev/sda1", parent=sda))
        assert [r.name for r in topology.physical()] == ["WDC", "Spare"]
        assert [r.name for r in topology.logical()] == ["d1"]
        assert [r.name for r in topology.untracked()] == ["Spare"]
        assert all(r.is_physical for r in topology.physical())
        assert not topology.logical()[0].is_physical


class TestBuildRequested:
    def test_disks_then_parity(self, config):
        requested = build_requested(config)
        assert [r.name for r in requested] == ["d1", "d2", "parity", "2-parity"]

    def test_parity_mount_is_containing_dir(self, config):
        requested = build_requested(config)
        assert requested[2].mount == "/mnt/parity1"
        assert requested[3].mount == "/mnt/parity2"

    def test_unresolved(self, config):
        for record in build_requested(config):
            assert record.device_id is None
            assert record.parent is None
            assert len(record.snapshot) == 0


class TestResolve:
    def test_shared_device_is_deduplicated(self, config, fake_query):
        query = fake_query(
            devices={"/dev/sda": {5: 16}, "/dev/sdb": {}},
            members={"d1": "/dev/sda", "d2": "/dev/sda", "parity": "/dev/sdb", "2-parity": "/dev/sdb"},
        )
        result = resolve(config, query, Operation.LIST)
        topology = result.topology

        assert len(topology.physical()) == 2
        logical = topology.logical()
        assert [r.name for r in logical] == ["d1", "d2", "parity", "2-parity"]
        assert topology.parent_of(logical[0]) is topology.parent_of(logical[1])
        assert topology.parent_of(logical[0]).file == "/dev/sda"

    def test_member_count_independent_of_devices(self, config, fake_query):
        query = fake_query(devices={"/dev/sda": {}}, members={"d1": "/dev/sda"})
        result = resolve(config, query, Operation.SMART)
        assert result.member_count == 4
        assert len(result.topology.logical()) == 1

    def test_operation_passed_once(self, config, fake_query):
        query = fake_query(devices={}, members={})
        resolve(config, query, Operation.SPIN_DOWN)
        assert query.calls == [(["d1", "d2", "parity", "2-parity"], Operation.SPIN_DOWN)]

    def test_unsupported(self, config, fake_query):
        query = fake_query(devices={"/dev/sda": {}}, members={"d1": "/dev/sda"}, supported=False)
        result = resolve(config, query, Operation.LIST)
        assert not result.supported
        assert len(result.topology) == 0
        assert result.diagnostic == "List unsupported in this platform."
        assert len(query.calls) == 1

    def test_query_error_is_not_retried(self, config, fake_query):
        query = fake_query(devices={}, members={}, error="lsblk returned no output")
        result = resolve(config, query, Operation.SMART)
        assert not result.supported
        assert result.diagnostic == "SMART failed: lsblk returned no output"
        assert len(query.calls) == 1

    def test_power_failures(self, config, fake_query):
        query = fake_query(
            devices={"/dev/sda": {}, "/dev/sdb": {}},
            members={"d1": "/dev/sda", "d2": "/dev/sdb"},
            failing=("/dev/sdb",),
        )
        result = resolve(config, query, Operation.SPIN_UP)
        assert result.supported
        assert result.failures == ["/dev/sdb"]
