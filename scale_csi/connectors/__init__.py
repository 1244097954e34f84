"""Cluster connectors for the Spectrum Scale management API.

- SpectrumScaleConnector: interface consumed by the bootstrap
- ScaleRestConnector: REST API v2 implementation
"""

from .base import (
    USER_SPECIFIED_INODE_LIMIT,
    USER_SPECIFIED_LINK_PATH,
    FilesetInfo,
    FilesystemMountDetails,
    SpectrumScaleConnector,
)
from .rest_v2 import ScaleRestConnector, get_connector

__all__ = [
    "USER_SPECIFIED_INODE_LIMIT",
    "USER_SPECIFIED_LINK_PATH",
    "FilesetInfo",
    "FilesystemMountDetails",
    "SpectrumScaleConnector",
    "ScaleRestConnector",
    "get_connector",
]
