"""Primary volume-root bootstrap.

Stages, in the order BootstrapOrchestrator runs them:
- validate_scale_config: declaration rules
- resolve_topology: cluster identities, primary/effective filesystem and mounts
- ensure_primary_fileset: create or link the allocation fileset
- validate_hostpath: bind-mounted host path can reach the fileset
- ensure_symlink_dir: volume symlink directory inside the fileset
"""

from .fileset import FilesetState, FilesetStatus, ensure_primary_fileset, get_fileset_status
from .hostpath import HOSTPATH_ENV, get_hostpath, validate_hostpath
from .orchestrator import BootstrapOrchestrator, ResolvedTopology, run_bootstrap
from .symlink import SYMLINK_DIR_NAME, SymlinkPaths, ensure_symlink_dir, symlink_paths
from .topology import ResolvedPrimary, close_connectors, connect_clusters, resolve_topology

__all__ = [
    "BootstrapOrchestrator",
    "FilesetState",
    "FilesetStatus",
    "HOSTPATH_ENV",
    "ResolvedPrimary",
    "ResolvedTopology",
    "SYMLINK_DIR_NAME",
    "SymlinkPaths",
    "close_connectors",
    "connect_clusters",
    "ensure_primary_fileset",
    "ensure_symlink_dir",
    "get_fileset_status",
    "get_hostpath",
    "resolve_topology",
    "run_bootstrap",
    "symlink_paths",
    "validate_hostpath",
]
