"""Resolution of the primary cluster, filesystem and mount point."""

from concurrent import futures
from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, Dict, Iterable, Mapping

from oslo_log import log as logging

from ..connectors.base import SpectrumScaleConnector
from ..exceptions import ScaleConfigError, ScaleConsistencyError
from ..settings import ClusterConfig, ScaleSettingsConfigMap

LOG = logging.getLogger(__name__)

ConnectorFactory = Callable[[ClusterConfig], SpectrumScaleConnector]


@dataclass(frozen=True)
class ResolvedPrimary:
    """Outcome of topology resolution.

    The primary_* fields describe the cluster carrying the primary block and
    its own view of the filesystem. The effective_* fields describe where the
    data actually lives: the same cluster, or the remote cluster that owns the
    filesystem when the primary cluster only mounts it remotely.
    """

    primary_cluster_id: str
    primary_connector: SpectrumScaleConnector
    primary_filesystem: str
    primary_mount_point: str
    effective_cluster_id: str
    effective_connector: SpectrumScaleConnector
    effective_filesystem: str
    effective_mount_point: str
    connectors: Mapping[str, SpectrumScaleConnector]

    @property
    def is_remote(self) -> bool:
        return self.effective_cluster_id != self.primary_cluster_id


def close_connectors(connectors: Iterable[SpectrumScaleConnector]) -> None:
    """Close every connector, logging failures instead of raising them."""
    for connector in connectors:
        try:
            connector.close()
        except Exception as e:
            LOG.warning("Failed to close connector %s: %s", connector, e)


def _connect(cluster: ClusterConfig, connector_factory: ConnectorFactory) -> SpectrumScaleConnector:
    connector = connector_factory(cluster)
    try:
        cluster_id = connector.get_cluster_id()
        if cluster_id != cluster.id:
            LOG.error(
                "Cluster ID %s from scale config does not match the ID %s reported by the cluster",
                cluster.id,
                cluster_id,
            )
            raise ScaleConsistencyError(
                details=f"cluster ID '{cluster.id}' does not match ID '{cluster_id}' reported by the cluster"
            )
    except Exception:
        close_connectors([connector])
        raise
    LOG.debug("Connected to cluster %s", cluster_id)
    return connector


def connect_clusters(
    config: ScaleSettingsConfigMap,
    connector_factory: ConnectorFactory,
    max_workers: int = 4,
) -> Dict[str, SpectrumScaleConnector]:
    """Build a connector per cluster and verify each cluster's identity.

    Clusters are queried in parallel. The first failure cancels the queries
    that have not started yet and is raised once the running ones return.
    Connectors built before the failure are closed.

    Returns:
        Connectors keyed by cluster ID, in declaration order

    Raises:
        ScaleConsistencyError: A cluster reports a different ID than declared
        ScaleConnectivityError: A cluster could not be queried
    """
    with futures.ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="scale-connect") as executor:
        pending = {
            executor.submit(_connect, cluster, connector_factory): cluster for cluster in config.clusters
        }
        done, not_done = futures.wait(pending, return_when=futures.FIRST_EXCEPTION)

        failed = [f for f in done if f.exception() is not None]
        if failed:
            for future in not_done:
                future.cancel()
            futures.wait(not_done)
            finished = [f for f in pending if not f.cancelled()]
            failed = [f for f in finished if f.exception() is not None]
            close_connectors(f.result() for f in finished if f.exception() is None)
            order = {cluster.id: i for i, cluster in enumerate(config.clusters)}
            first = min(failed, key=lambda f: order[pending[f].id])
            LOG.error("Unable to initialize connector for cluster %s", pending[first].id)
            raise first.exception()

    by_cluster = {pending[f].id: f.result() for f in done}
    return {cluster.id: by_cluster[cluster.id] for cluster in config.clusters}


def _check_mounted(connector: SpectrumScaleConnector, filesystem: str, cluster_id: str) -> str:
    fs_mount = connector.get_filesystem_mount_details(filesystem)
    if not fs_mount.nodes_mounted:
        LOG.error("Filesystem %s is not mounted on any node of cluster %s", filesystem, cluster_id)
        raise ScaleConsistencyError(
            details=f"primary filesystem '{filesystem}' not mounted on any node of cluster '{cluster_id}'"
        )
    LOG.debug(
        "Filesystem %s mounted at %s on %d node(s) of cluster %s",
        filesystem,
        fs_mount.mount_point,
        len(fs_mount.nodes_mounted),
        cluster_id,
    )
    return fs_mount.mount_point


def resolve_topology(
    config: ScaleSettingsConfigMap,
    connector_factory: ConnectorFactory,
    max_workers: int = 4,
) -> ResolvedPrimary:
    """Pick the connector, filesystem and mount point backing the primary fileset.

    Args:
        config: Validated declaration
        connector_factory: Builds a connector for a declared cluster
        max_workers: Bound on parallel cluster queries

    Returns:
        ResolvedPrimary

    Raises:
        ScaleConsistencyError: Identity mismatch or filesystem not mounted anywhere
        ScaleConnectivityError: A management API call failed
    """
    primary_cluster = config.primary_cluster()
    if primary_cluster is None:
        raise ScaleConfigError(details="no primary cluster specified")
    primary = primary_cluster.primary

    connectors = connect_clusters(config, connector_factory, max_workers=max_workers)

    primary_connector = connectors[primary_cluster.id]
    effective_cluster_id = primary_cluster.id
    effective_connector = primary_connector
    effective_fs = primary.primary_fs

    try:
        primary_mount = _check_mounted(primary_connector, primary.primary_fs, primary_cluster.id)
        effective_mount = primary_mount

        if primary.remote_cluster:
            effective_cluster_id = primary.remote_cluster
            effective_connector = connectors[primary.remote_cluster]
            effective_fs = primary.remote_fs or primary.primary_fs
            effective_mount = _check_mounted(effective_connector, effective_fs, effective_cluster_id)
            LOG.info(
                "Primary filesystem %s is owned by cluster %s as %s (mounted at %s)",
                primary.primary_fs,
                effective_cluster_id,
                effective_fs,
                effective_mount,
            )
    except Exception:
        close_connectors(connectors.values())
        raise

    return ResolvedPrimary(
        primary_cluster_id=primary_cluster.id,
        primary_connector=primary_connector,
        primary_filesystem=primary.primary_fs,
        primary_mount_point=primary_mount,
        effective_cluster_id=effective_cluster_id,
        effective_connector=effective_connector,
        effective_filesystem=effective_fs,
        effective_mount_point=effective_mount,
        connectors=MappingProxyType(dict(connectors)),
    )
