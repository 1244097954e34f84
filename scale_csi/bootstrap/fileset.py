"""Primary fileset bootstrap."""

import posixpath
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict

from oslo_log import log as logging

from ..connectors.base import USER_SPECIFIED_INODE_LIMIT, USER_SPECIFIED_LINK_PATH, SpectrumScaleConnector
from ..exceptions import ScaleFilesetNotFound, ScaleResourceStateError
from ..utils import without_trailing_sep

LOG = logging.getLogger(__name__)

# Link path reported for a fileset that is not linked
UNLINKED_MARKER = "--"


class FilesetState(str, Enum):
    """Fileset states the bootstrap knows how to converge."""

    NOT_FOUND = "not_found"
    UNLINKED = "unlinked"
    LINKED = "linked"


@dataclass(frozen=True)
class FilesetStatus:
    state: FilesetState
    link_path: str = ""


def get_fileset_status(connector: SpectrumScaleConnector, filesystem: str, fileset_name: str) -> FilesetStatus:
    """Classify the current state of a fileset.

    Raises:
        ScaleResourceStateError: The reported link path is neither unset nor absolute
    """
    try:
        fileset = connector.list_fileset(filesystem, fileset_name)
    except ScaleFilesetNotFound:
        return FilesetStatus(FilesetState.NOT_FOUND)

    link_path = fileset.link_path
    if not link_path or link_path == UNLINKED_MARKER:
        return FilesetStatus(FilesetState.UNLINKED)
    if not isinstance(link_path, str) or not link_path.startswith("/"):
        raise ScaleResourceStateError(
            fileset=fileset_name, filesystem=filesystem, details=f"link path {link_path!r} is not absolute"
        )
    return FilesetStatus(FilesetState.LINKED, link_path)


def ensure_primary_fileset(
    connector: SpectrumScaleConnector,
    filesystem: str,
    mount_point: str,
    fileset_name: str,
    inode_limit: str = "",
) -> str:
    """Make sure the primary fileset exists and is linked.

    Never creates a fileset that already exists, so it is safe to call on
    every start: the link path converges to the same value.

    Args:
        connector: Connector of the cluster owning the filesystem
        filesystem: Filesystem name on that cluster
        mount_point: Filesystem mount point on that cluster
        fileset_name: Primary fileset name
        inode_limit: Optional inode count for a newly created fileset

    Returns:
        Link path of the fileset
    """
    LOG.debug(
        "Ensuring primary fileset. filesystem: %s, mountpoint: %s, fileset: %s",
        filesystem,
        mount_point,
        fileset_name,
    )
    status = get_fileset_status(connector, filesystem, fileset_name)
    new_link_path = posixpath.join(without_trailing_sep(mount_point), fileset_name)

    if status.state == FilesetState.NOT_FOUND:
        LOG.info("Primary fileset %s not found. Creating it.", fileset_name)
        opts: Dict[str, Any] = {USER_SPECIFIED_LINK_PATH: new_link_path}
        if inode_limit:
            opts[USER_SPECIFIED_INODE_LIMIT] = inode_limit
        connector.create_fileset(filesystem, fileset_name, opts)
        return new_link_path

    if status.state == FilesetState.UNLINKED:
        LOG.info("Primary fileset %s not linked. Linking it.", fileset_name)
        connector.link_fileset(filesystem, fileset_name, new_link_path)
        LOG.info("Linked primary fileset %s at %s", fileset_name, new_link_path)
        return new_link_path

    LOG.info("Primary fileset %s exists and linked at %s", fileset_name, status.link_path)
    return status.link_path
