"""Directory holding one symlink per provisioned volume."""

from typing import NamedTuple

from oslo_log import log as logging

from ..connectors.base import SpectrumScaleConnector
from ..exceptions import ScaleConsistencyError
from ..utils import join_relative, relative_to_mount

LOG = logging.getLogger(__name__)

SYMLINK_DIR_NAME = ".volumes"


class SymlinkPaths(NamedTuple):
    """Both forms of the symlink directory path.

    absolute: host-visible path, used to build symlink targets
    relative: path relative to the filesystem mount, used for API calls
    """

    absolute: str
    relative: str


def symlink_paths(mount_point: str, fileset_link_path: str) -> SymlinkPaths:
    """Derive the symlink directory paths from the fileset link path.

    Raises:
        ScaleConsistencyError: The link path is not under the mount point
    """
    try:
        fileset_relative = relative_to_mount(fileset_link_path, mount_point)
    except ValueError:
        raise ScaleConsistencyError(
            details=f"fileset link path {fileset_link_path} is not under mount point {mount_point}"
        )
    return SymlinkPaths(
        absolute=f"{fileset_link_path.rstrip('/')}/{SYMLINK_DIR_NAME}",
        relative=join_relative(fileset_relative, SYMLINK_DIR_NAME),
    )


def ensure_symlink_dir(
    connector: SpectrumScaleConnector, filesystem: str, mount_point: str, fileset_link_path: str
) -> SymlinkPaths:
    """Create the volume symlink directory inside the primary fileset.

    Returns:
        SymlinkPaths of the directory
    """
    LOG.debug(
        "Creating symlink directory. filesystem: %s, mountpoint: %s, filesetlinkpath: %s",
        filesystem,
        mount_point,
        fileset_link_path,
    )
    paths = symlink_paths(mount_point, fileset_link_path)
    try:
        connector.make_directory(filesystem, paths.relative, 0, 0)
    except Exception:
        LOG.error("Make directory failed on filesystem %s, path = %s", filesystem, paths.relative)
        raise
    return paths
