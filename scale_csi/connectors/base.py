"""Base class for Spectrum Scale cluster connectors."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List

# Key of the inode count hint in create_fileset options
USER_SPECIFIED_INODE_LIMIT = "inodeLimit"
# Key of the link path in create_fileset options
USER_SPECIFIED_LINK_PATH = "path"


@dataclass(frozen=True)
class FilesystemMountDetails:
    """Mount state of a filesystem on one cluster.

    Attributes:
        mount_point: Path under which the cluster's nodes mount the filesystem
        nodes_mounted: Names of the nodes that currently have it mounted
    """

    mount_point: str
    nodes_mounted: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class FilesetInfo:
    """Fileset as listed by the management API.

    Attributes:
        name: Fileset name
        link_path: Junction path; empty or "--" when the fileset is unlinked
    """

    name: str
    link_path: str = ""


class SpectrumScaleConnector(ABC):
    """Abstract base class for cluster connectors.

    One connector exists per declared cluster. Timeouts and retries are the
    connector's concern; callers issue each operation once.
    """

    @abstractmethod
    def get_cluster_id(self) -> str:
        """Return the cluster ID reported by the cluster.

        Raises:
            ScaleConnectivityError: Call could not be completed
        """
        pass

    @abstractmethod
    def get_filesystem_mount_details(self, filesystem: str) -> FilesystemMountDetails:
        """Return mount point and mounting nodes of a filesystem.

        Raises:
            ScaleConnectivityError: Call could not be completed
        """
        pass

    @abstractmethod
    def list_fileset(self, filesystem: str, name: str) -> FilesetInfo:
        """Look up a fileset.

        Raises:
            ScaleFilesetNotFound: Fileset does not exist
            ScaleConnectivityError: Call could not be completed
        """
        pass

    @abstractmethod
    def create_fileset(self, filesystem: str, name: str, opts: Dict[str, Any]) -> None:
        """Create an independent fileset.

        Args:
            filesystem: Filesystem name
            name: Fileset name
            opts: Optional USER_SPECIFIED_INODE_LIMIT / USER_SPECIFIED_LINK_PATH
        """
        pass

    @abstractmethod
    def link_fileset(self, filesystem: str, name: str, link_path: str) -> None:
        """Link an existing fileset at link_path."""
        pass

    @abstractmethod
    def make_directory(self, filesystem: str, path: str, uid: int, gid: int) -> None:
        """Create a directory relative to the filesystem mount point.

        Note:
            Must be idempotent: an existing directory is not an error.
        """
        pass

    def close(self) -> None:
        """Release sessions and temporary files held by the connector."""
        pass
