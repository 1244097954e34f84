"""Bootstrap sequence producing the resolved topology."""

import contextlib
from dataclasses import dataclass
from functools import partial
from typing import Any, Dict, Mapping, Optional

from oslo_log import log as logging

from ..configuration import CONF_GROUP
from ..connectors import get_connector
from ..connectors.base import SpectrumScaleConnector
from ..exceptions import ScaleBootstrapError, ScaleConsistencyError
from ..settings import ScaleSettingsConfigMap, load_scale_config
from ..utils import rebase_path
from ..validators import validate_scale_config
from .fileset import ensure_primary_fileset
from .hostpath import get_hostpath, validate_hostpath
from .symlink import ensure_symlink_dir
from .topology import ConnectorFactory, ResolvedPrimary, close_connectors, resolve_topology

LOG = logging.getLogger(__name__)

STAGE_VALIDATE = "validate-config"
STAGE_RESOLVE = "resolve-topology"
STAGE_FILESET = "primary-fileset"
STAGE_HOSTPATH = "hostpath"
STAGE_SYMLINK = "symlink-dir"


@dataclass(frozen=True)
class ResolvedTopology:
    """Where volumes are provisioned. Computed once at start-up, then read only.

    Attributes:
        primary_cluster_id: Cluster carrying the primary block
        primary_connector: Connector of that cluster
        filesystem: Primary filesystem name as known to that cluster
        mount_point: Primary filesystem mount point on that cluster
        fileset_name: Primary fileset name
        fileset_link_path: Fileset link path under mount_point
        symlink_absolute_path: Host-visible volume symlink directory
        symlink_relative_path: Same directory relative to mount_point
        effective_cluster_id: Cluster owning the filesystem
        effective_connector: Connector of the owning cluster
        effective_filesystem: Filesystem name on the owning cluster
        effective_mount_point: Mount point on the owning cluster
        connectors: All connectors keyed by cluster ID
    """

    primary_cluster_id: str
    primary_connector: SpectrumScaleConnector
    filesystem: str
    mount_point: str
    fileset_name: str
    fileset_link_path: str
    symlink_absolute_path: str
    symlink_relative_path: str
    effective_cluster_id: str
    effective_connector: SpectrumScaleConnector
    effective_filesystem: str
    effective_mount_point: str
    connectors: Mapping[str, SpectrumScaleConnector]

    def to_dict(self) -> Dict[str, Any]:
        """Plain representation without connectors, for logging and display."""
        return {
            "primary_cluster_id": self.primary_cluster_id,
            "filesystem": self.filesystem,
            "mount_point": self.mount_point,
            "fileset_name": self.fileset_name,
            "fileset_link_path": self.fileset_link_path,
            "symlink_absolute_path": self.symlink_absolute_path,
            "symlink_relative_path": self.symlink_relative_path,
            "effective_cluster_id": self.effective_cluster_id,
            "effective_filesystem": self.effective_filesystem,
            "effective_mount_point": self.effective_mount_point,
            "clusters": sorted(self.connectors),
        }

    def close(self) -> None:
        """Close the connectors of every cluster."""
        close_connectors(self.connectors.values())


@contextlib.contextmanager
def _stage(name: str):
    try:
        yield
    except Exception as e:
        LOG.error("Bootstrap stage %s failed: %s", name, e)
        raise ScaleBootstrapError(stage=name, reason=str(e), cause=e) from e


def local_link_path(link_path: str, resolved: ResolvedPrimary) -> str:
    """Translate a link path from the owning cluster's mount to the local one.

    Raises:
        ScaleConsistencyError: The link path is not under the owning cluster's mount point
    """
    if resolved.effective_mount_point == resolved.primary_mount_point:
        return link_path
    try:
        return rebase_path(link_path, resolved.effective_mount_point, resolved.primary_mount_point)
    except ValueError:
        raise ScaleConsistencyError(
            details=(
                f"fileset link path {link_path} is not under mount point "
                f"{resolved.effective_mount_point} of cluster {resolved.effective_cluster_id}"
            )
        )


class BootstrapOrchestrator:
    """Runs the bootstrap stages in order and assembles the ResolvedTopology.

    Any failure aborts the whole run with a ScaleBootstrapError naming the
    stage; nothing partial is returned and the connectors built so far are
    closed. On success the connectors belong to the returned topology.
    """

    def __init__(
        self,
        config: ScaleSettingsConfigMap,
        connector_factory: ConnectorFactory,
        hostpath: Optional[str] = None,
        max_workers: int = 4,
    ):
        self.config = config
        self.connector_factory = connector_factory
        self.hostpath = hostpath
        self.max_workers = max_workers

    def run(self) -> ResolvedTopology:
        with _stage(STAGE_VALIDATE):
            validate_scale_config(self.config)
            primary = self.config.primary_cluster().primary

        with _stage(STAGE_RESOLVE):
            resolved = resolve_topology(self.config, self.connector_factory, max_workers=self.max_workers)

        try:
            with _stage(STAGE_FILESET):
                link_path = ensure_primary_fileset(
                    resolved.effective_connector,
                    resolved.effective_filesystem,
                    resolved.effective_mount_point,
                    primary.primary_fset,
                    primary.inode_limit,
                )
                link_path = local_link_path(link_path, resolved)

            with _stage(STAGE_HOSTPATH):
                hostpath = self.hostpath or get_hostpath()
                validate_hostpath(hostpath, link_path, resolved.primary_mount_point)

            with _stage(STAGE_SYMLINK):
                symlinks = ensure_symlink_dir(
                    resolved.primary_connector,
                    resolved.primary_filesystem,
                    resolved.primary_mount_point,
                    link_path,
                )
        except ScaleBootstrapError:
            close_connectors(resolved.connectors.values())
            raise

        topology = ResolvedTopology(
            primary_cluster_id=resolved.primary_cluster_id,
            primary_connector=resolved.primary_connector,
            filesystem=resolved.primary_filesystem,
            mount_point=resolved.primary_mount_point,
            fileset_name=primary.primary_fset,
            fileset_link_path=link_path,
            symlink_absolute_path=symlinks.absolute,
            symlink_relative_path=symlinks.relative,
            effective_cluster_id=resolved.effective_cluster_id,
            effective_connector=resolved.effective_connector,
            effective_filesystem=resolved.effective_filesystem,
            effective_mount_point=resolved.effective_mount_point,
            connectors=resolved.connectors,
        )
        LOG.info("IBM Spectrum Scale: Plugin initialized (primary fileset linked at %s)", link_path)
        return topology


def run_bootstrap(conf, hostpath: Optional[str] = None) -> ResolvedTopology:
    """Load the declaration named by ``conf`` and run the bootstrap.

    Args:
        conf: ConfigOpts with the spectrum_scale group registered
        hostpath: Bind-mounted host path; read from SCALE_HOSTPATH when omitted

    Returns:
        ResolvedTopology

    Raises:
        ScaleBootstrapError: Any stage failed
    """
    group = getattr(conf, CONF_GROUP)
    with _stage(STAGE_VALIDATE):
        config = load_scale_config(group.config_path, group.secrets_base_path, group.cacert_base_path)

    orchestrator = BootstrapOrchestrator(
        config,
        partial(get_connector, conf=conf),
        hostpath=hostpath,
        max_workers=group.bootstrap_workers,
    )
    return orchestrator.run()
