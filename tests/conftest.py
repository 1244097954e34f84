"""
Pytest configuration and fixtures.
"""

import shutil
import tempfile
from pathlib import Path
from typing import Dict, Optional, Tuple

import pytest

from scale_csi.connectors.base import (
    USER_SPECIFIED_LINK_PATH,
    FilesetInfo,
    FilesystemMountDetails,
    SpectrumScaleConnector,
)
from scale_csi.exceptions import ScaleAPIError, ScaleFilesetNotFound
from scale_csi.settings import ClusterConfig, PrimaryConfig, RestApi, ScaleSettingsConfigMap


class FakeConnector(SpectrumScaleConnector):
    """In-memory cluster: mounts, filesets and directories, with a call log."""

    MUTATIONS = ("create_fileset", "link_fileset")

    def __init__(
        self,
        cluster_id: str,
        mounts: Optional[Dict[str, FilesystemMountDetails]] = None,
        filesets: Optional[Dict[Tuple[str, str], str]] = None,
    ):
        self.cluster_id = cluster_id
        self.mounts = dict(mounts or {})
        self.filesets = dict(filesets or {})
        self.directories = set()
        self.calls = []
        self.closed = False

    def get_cluster_id(self) -> str:
        self.calls.append(("get_cluster_id",))
        return self.cluster_id

    def get_filesystem_mount_details(self, filesystem):
        self.calls.append(("get_filesystem_mount_details", filesystem))
        if filesystem not in self.mounts:
            raise ScaleAPIError(details=f"filesystem {filesystem} unknown", status_code=400)
        return self.mounts[filesystem]

    def list_fileset(self, filesystem, name):
        self.calls.append(("list_fileset", filesystem, name))
        if (filesystem, name) not in self.filesets:
            raise ScaleFilesetNotFound(fileset=name, filesystem=filesystem)
        return FilesetInfo(name=name, link_path=self.filesets[(filesystem, name)])

    def create_fileset(self, filesystem, name, opts):
        self.calls.append(("create_fileset", filesystem, name, dict(opts)))
        self.filesets[(filesystem, name)] = opts.get(USER_SPECIFIED_LINK_PATH) or "--"

    def link_fileset(self, filesystem, name, link_path):
        self.calls.append(("link_fileset", filesystem, name, link_path))
        self.filesets[(filesystem, name)] = link_path

    def make_directory(self, filesystem, path, uid, gid):
        self.calls.append(("make_directory", filesystem, path, uid, gid))
        self.directories.add((filesystem, path))

    def close(self):
        self.closed = True

    @property
    def mutations(self):
        return [call for call in self.calls if call[0] in self.MUTATIONS]


def _make_cluster(
    cluster_id="1111",
    primary=None,
    gui_host="gui.example.com",
    secrets="secret1",
    username="admin",
    password="passw0rd",
    secure_ssl_mode=False,
    cacert_value=None,
):
    return ClusterConfig(
        id=cluster_id,
        primary=PrimaryConfig(**primary) if primary else None,
        secure_ssl_mode=secure_ssl_mode,
        secrets=secrets,
        rest_api=[RestApi(gui_host=gui_host)] if gui_host is not None else [],
        mgmt_username=username,
        mgmt_password=password,
        cacert_value=cacert_value,
    )


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path)
    shutil.rmtree(temp_path)


@pytest.fixture
def fake_connector_cls():
    return FakeConnector


@pytest.fixture
def make_cluster():
    """Build a ClusterConfig with credentials already attached."""
    return _make_cluster


@pytest.fixture
def single_cluster_config():
    """One cluster declaring fs0/csiroot as primary."""
    return ScaleSettingsConfigMap(
        clusters=[_make_cluster("1111", primary={"primary_fs": "fs0", "primary_fset": "csiroot"})]
    )


@pytest.fixture
def remote_cluster_config():
    """Local cluster 1111 mounting fs0 owned by cluster 2222 as gpfs0."""
    return ScaleSettingsConfigMap(
        clusters=[
            _make_cluster(
                "1111",
                primary={
                    "primary_fs": "fs0",
                    "primary_fset": "csiroot",
                    "remote_cluster": "2222",
                    "remote_fs": "gpfs0",
                },
            ),
            _make_cluster("2222", gui_host="gui2.example.com", secrets="secret2"),
        ]
    )
