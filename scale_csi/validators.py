"""
Cluster declaration validation.
"""

from oslo_log import log as logging

from .exceptions import ScaleConfigError
from .settings import ClusterConfig, ScaleSettingsConfigMap

LOG = logging.getLogger(__name__)


def _validate_cluster(cluster: ClusterConfig) -> None:
    if not cluster.id or not cluster.rest_api or not cluster.rest_api[0].gui_host:
        raise ScaleConfigError(details=f"mandatory parameters not specified for cluster '{cluster.id}'")


def _validate_credentials(cluster: ClusterConfig) -> None:
    if not cluster.secrets or not cluster.mgmt_username or not cluster.mgmt_password:
        raise ScaleConfigError(details=f"invalid secret specified for cluster '{cluster.id}'")

    if cluster.secure_ssl_mode and not cluster.cacert_value:
        raise ScaleConfigError(
            details=f"CA certificate not specified in secure SSL mode for cluster '{cluster.id}'"
        )


def validate_scale_config(config: ScaleSettingsConfigMap) -> None:
    """
    Validate a multi-cluster declaration.

    Checks are applied cluster by cluster, in declaration order, and the first
    violation is raised. Nothing is repaired.

    Args:
        config: Declaration with credentials already attached

    Raises:
        ScaleConfigError: If any rule is violated
    """
    LOG.debug("Validating Spectrum Scale configuration (%d clusters)", len(config.clusters))
    if not config.clusters:
        raise ScaleConfigError(details="missing cluster information")

    primary_found = False
    remote_cluster = ""
    non_primary_ids = set()
    seen_ids = set()

    for cluster in config.clusters:
        _validate_cluster(cluster)

        if cluster.id in seen_ids:
            raise ScaleConfigError(details=f"cluster '{cluster.id}' declared more than once")
        seen_ids.add(cluster.id)

        if cluster.primary is not None:
            if primary_found:
                raise ScaleConfigError(details="more than one primary cluster specified")
            primary_found = True

            if not cluster.primary.primary_fs or not cluster.primary.primary_fset:
                raise ScaleConfigError(
                    details=f"mandatory parameters not specified for primary cluster '{cluster.id}'"
                )
            remote_cluster = cluster.primary.remote_cluster
        else:
            non_primary_ids.add(cluster.id)

        _validate_credentials(cluster)

    if not primary_found:
        raise ScaleConfigError(details="no primary cluster specified")

    if remote_cluster and remote_cluster not in non_primary_ids:
        raise ScaleConfigError(
            details=(
                f"remote cluster '{remote_cluster}' specified for primary filesystem, "
                "but no definition found for it"
            )
        )
