"""Cross-check of the bind-mounted host path against the API view of the filesystem."""

from oslo_log import log as logging

from ..exceptions import ScaleConfigError, ScaleConsistencyError
from ..utils import get_env, is_path_prefix, with_trailing_sep

LOG = logging.getLogger(__name__)

HOSTPATH_ENV = "SCALE_HOSTPATH"


def get_hostpath() -> str:
    """Return the host path the plugin container has bind-mounted.

    Raises:
        ScaleConfigError: SCALE_HOSTPATH is not set
    """
    hostpath = get_env(HOSTPATH_ENV)
    if not hostpath:
        raise ScaleConfigError(details=f"{HOSTPATH_ENV} not defined in daemonset")
    return hostpath


def validate_hostpath(hostpath: str, link_path: str, mount_point: str) -> None:
    """Require the host path to be related to the fileset or filesystem.

    Passes when any of these holds: the link path or the mount point contains
    the host path, or the host path contains the link path or the mount point.
    A host path that is merely related by containment, not equal, is accepted.

    Args:
        hostpath: Bind-mounted host path
        link_path: Primary fileset link path (local view)
        mount_point: Primary filesystem mount point (local view)

    Raises:
        ScaleConsistencyError: No containment relation holds
    """
    LOG.debug("Validating hostpath %s against mountpath: %s, linkpath: %s", hostpath, mount_point, link_path)
    hostpath = with_trailing_sep(hostpath)
    link_path = with_trailing_sep(link_path)
    mount_point = with_trailing_sep(mount_point)

    if not (
        is_path_prefix(link_path, hostpath)
        or is_path_prefix(mount_point, hostpath)
        or is_path_prefix(hostpath, link_path)
        or is_path_prefix(hostpath, mount_point)
    ):
        LOG.error("Hostpath validation failed for %s", hostpath)
        raise ScaleConsistencyError(
            details=(
                f"invalid {HOSTPATH_ENV} {hostpath}: not related to fileset link path {link_path} "
                f"or mount point {mount_point}"
            )
        )
