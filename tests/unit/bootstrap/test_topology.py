"""
Unit tests for cluster connection and primary topology resolution.
"""

import os
import threading
import time
from unittest.mock import patch

import pytest

from scale_csi.bootstrap.topology import connect_clusters, resolve_topology
from scale_csi.connectors import rest_v2
from scale_csi.connectors.base import FilesystemMountDetails
from scale_csi.exceptions import ScaleConnectivityError, ScaleConsistencyError
from scale_csi.settings import ScaleSettingsConfigMap

MOUNTED = FilesystemMountDetails(mount_point="/ibm/fs0", nodes_mounted=["node1", "node2"])


def _factory(connectors):
    """Connector factory returning prebuilt fakes by declared cluster ID."""
    return lambda cluster: connectors[cluster.id]


class TestConnectClusters:
    @pytest.mark.unit
    def test_connectors_in_declaration_order(self, remote_cluster_config, fake_connector_cls):
        fakes = {"1111": fake_connector_cls("1111"), "2222": fake_connector_cls("2222")}

        connectors = connect_clusters(remote_cluster_config, _factory(fakes))

        assert list(connectors) == ["1111", "2222"]
        assert connectors["2222"] is fakes["2222"]

    @pytest.mark.unit
    def test_id_mismatch(self, single_cluster_config, fake_connector_cls):
        fakes = {"1111": fake_connector_cls("9999")}

        with pytest.raises(ScaleConsistencyError, match="'1111' does not match ID '9999'"):
            connect_clusters(single_cluster_config, _factory(fakes))

    @pytest.mark.unit
    def test_first_failure_in_declaration_order_is_raised(self, make_cluster, fake_connector_cls):
        config = ScaleSettingsConfigMap(
            clusters=[
                make_cluster("1111", primary={"primary_fs": "fs0", "primary_fset": "csiroot"}),
                make_cluster("2222", secrets="secret2"),
                make_cluster("3333", secrets="secret3"),
            ]
        )
        fakes = {
            "1111": fake_connector_cls("1111"),
            "2222": fake_connector_cls("0000"),
            "3333": fake_connector_cls("0001"),
        }

        with pytest.raises(ScaleConsistencyError, match="'2222'"):
            connect_clusters(config, _factory(fakes), max_workers=1)

    @pytest.mark.unit
    def test_factory_error_propagates(self, single_cluster_config):
        def factory(cluster):
            raise ScaleConnectivityError(details="connection refused")

        with pytest.raises(ScaleConnectivityError, match="connection refused"):
            connect_clusters(single_cluster_config, factory)

    @pytest.mark.unit
    def test_clusters_queried_in_parallel(self, remote_cluster_config, fake_connector_cls):
        barrier = threading.Barrier(2, timeout=5)

        class BarrierConnector(fake_connector_cls):
            def get_cluster_id(self):
                barrier.wait()
                return super().get_cluster_id()

        fakes = {"1111": BarrierConnector("1111"), "2222": BarrierConnector("2222")}

        connectors = connect_clusters(remote_cluster_config, _factory(fakes), max_workers=2)

        assert set(connectors) == {"1111", "2222"}

    @pytest.mark.unit
    def test_failure_cancels_queued_queries(self, make_cluster, fake_connector_cls):
        ids = [str(1000 + i) for i in range(20)]
        config = ScaleSettingsConfigMap(
            clusters=[make_cluster(ids[0], primary={"primary_fs": "fs0", "primary_fset": "csiroot"})]
            + [make_cluster(cluster_id, secrets=f"secret{cluster_id}") for cluster_id in ids[1:]]
        )
        queried = []

        def factory(cluster):
            queried.append(cluster.id)
            if cluster.id == ids[0]:
                return fake_connector_cls("9999")
            time.sleep(0.1)
            return fake_connector_cls(cluster.id)

        with pytest.raises(ScaleConsistencyError, match=f"'{ids[0]}'"):
            connect_clusters(config, factory, max_workers=2)

        assert queried[0] == ids[0]
        assert len(queried) < len(ids)
        assert set(ids[10:]).isdisjoint(queried)

    @pytest.mark.unit
    def test_failure_closes_connectors_already_built(self, remote_cluster_config, fake_connector_cls):
        fakes = {"1111": fake_connector_cls("1111"), "2222": fake_connector_cls("0000")}

        with pytest.raises(ScaleConsistencyError):
            connect_clusters(remote_cluster_config, _factory(fakes), max_workers=2)

        assert fakes["1111"].closed
        assert fakes["2222"].closed

    @pytest.mark.unit
    def test_failed_identity_check_removes_ca_bundle(self, make_cluster):
        config = ScaleSettingsConfigMap(
            clusters=[
                make_cluster(
                    "1111",
                    primary={"primary_fs": "fs0", "primary_fset": "csiroot"},
                    secure_ssl_mode=True,
                    cacert_value=b"CERT",
                )
            ]
        )
        written = []
        write_ca_bundle = rest_v2._write_ca_bundle

        def record(cacert_value):
            path = write_ca_bundle(cacert_value)
            written.append(path)
            return path

        with patch("scale_csi.connectors.rest_v2._write_ca_bundle", side_effect=record), patch.object(
            rest_v2.ScaleRestConnector, "get_cluster_id", return_value="9999"
        ):
            with pytest.raises(ScaleConsistencyError):
                connect_clusters(config, rest_v2.get_connector)

        assert len(written) == 1
        assert not os.path.exists(written[0])


class TestResolveTopology:
    @pytest.mark.unit
    def test_local_primary(self, single_cluster_config, fake_connector_cls):
        fake = fake_connector_cls("1111", mounts={"fs0": MOUNTED})

        resolved = resolve_topology(single_cluster_config, _factory({"1111": fake}))

        assert resolved.primary_cluster_id == "1111"
        assert resolved.primary_connector is fake
        assert resolved.primary_filesystem == "fs0"
        assert resolved.primary_mount_point == "/ibm/fs0"
        assert resolved.effective_cluster_id == "1111"
        assert resolved.effective_connector is fake
        assert resolved.effective_filesystem == "fs0"
        assert resolved.effective_mount_point == "/ibm/fs0"
        assert resolved.is_remote is False

    @pytest.mark.unit
    def test_not_mounted_anywhere(self, single_cluster_config, fake_connector_cls):
        fake = fake_connector_cls(
            "1111", mounts={"fs0": FilesystemMountDetails(mount_point="/ibm/fs0", nodes_mounted=[])}
        )

        with pytest.raises(ScaleConsistencyError, match="'fs0' not mounted on any node of cluster '1111'"):
            resolve_topology(single_cluster_config, _factory({"1111": fake}))

        assert fake.mutations == []
        assert not fake.directories

    @pytest.mark.unit
    def test_remote_cluster_switches_effective_view(self, remote_cluster_config, fake_connector_cls):
        local = fake_connector_cls("1111", mounts={"fs0": MOUNTED})
        remote = fake_connector_cls(
            "2222", mounts={"gpfs0": FilesystemMountDetails(mount_point="/gpfs/gpfs0", nodes_mounted=["r1"])}
        )

        resolved = resolve_topology(remote_cluster_config, _factory({"1111": local, "2222": remote}))

        assert resolved.primary_connector is local
        assert resolved.primary_mount_point == "/ibm/fs0"
        assert resolved.effective_cluster_id == "2222"
        assert resolved.effective_connector is remote
        assert resolved.effective_filesystem == "gpfs0"
        assert resolved.effective_mount_point == "/gpfs/gpfs0"
        assert resolved.is_remote is True
        assert ("get_filesystem_mount_details", "gpfs0") in remote.calls

    @pytest.mark.unit
    def test_remote_without_remote_fs_uses_primary_fs(self, make_cluster, fake_connector_cls):
        config = ScaleSettingsConfigMap(
            clusters=[
                make_cluster(
                    "1111", primary={"primary_fs": "fs0", "primary_fset": "csiroot", "remote_cluster": "2222"}
                ),
                make_cluster("2222", secrets="secret2"),
            ]
        )
        local = fake_connector_cls("1111", mounts={"fs0": MOUNTED})
        remote = fake_connector_cls(
            "2222", mounts={"fs0": FilesystemMountDetails(mount_point="/gpfs/fs0", nodes_mounted=["r1"])}
        )

        resolved = resolve_topology(config, _factory({"1111": local, "2222": remote}))

        assert resolved.effective_filesystem == "fs0"
        assert resolved.effective_mount_point == "/gpfs/fs0"

    @pytest.mark.unit
    def test_remote_not_mounted(self, remote_cluster_config, fake_connector_cls):
        local = fake_connector_cls("1111", mounts={"fs0": MOUNTED})
        remote = fake_connector_cls(
            "2222", mounts={"gpfs0": FilesystemMountDetails(mount_point="/gpfs/gpfs0", nodes_mounted=[])}
        )

        with pytest.raises(ScaleConsistencyError, match="cluster '2222'"):
            resolve_topology(remote_cluster_config, _factory({"1111": local, "2222": remote}))

        assert local.closed
        assert remote.closed

    @pytest.mark.unit
    def test_connectors_mapping_is_read_only(self, single_cluster_config, fake_connector_cls):
        fake = fake_connector_cls("1111", mounts={"fs0": MOUNTED})

        resolved = resolve_topology(single_cluster_config, _factory({"1111": fake}))

        with pytest.raises(TypeError):
            resolved.connectors["2222"] = fake
