"""
Cluster declaration models and loader.

The declaration is the JSON document mounted from the plugin config map. Credentials
are not part of it: each cluster names a secret directory whose ``username`` and
``password`` files are read here, and secure clusters name a CA certificate file.
"""

from pathlib import Path
from typing import List, Optional

from oslo_log import log as logging
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .configuration import DEFAULT_CACERT_BASE_PATH, DEFAULT_SECRETS_BASE_PATH
from .exceptions import ScaleConfigError

LOG = logging.getLogger(__name__)

DEFAULT_GUI_PORT = 443


class RestApi(BaseModel):
    """Management GUI endpoint of a cluster."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    gui_host: str = Field("", alias="guiHost", description="Management GUI host name or IP")
    gui_port: int = Field(DEFAULT_GUI_PORT, alias="guiPort", ge=1, le=65535)


class PrimaryConfig(BaseModel):
    """Primary filesystem/fileset block attached to exactly one cluster."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    primary_fs: str = Field("", alias="primaryFs", description="Filesystem holding the primary fileset")
    primary_fset: str = Field("", alias="primaryFset", description="Fileset used as allocation root")
    inode_limit: str = Field("", alias="inodeLimit", description="Optional inode count for the fileset")
    remote_cluster: str = Field("", alias="remoteCluster", description="Cluster that owns primary_fs")
    remote_fs: str = Field("", alias="remoteFs", description="Name of primary_fs on remote_cluster")

    @field_validator("inode_limit", mode="before")
    def coerce_inode_limit(cls, v):
        if v is None:
            return ""
        return str(v)

    def is_empty(self) -> bool:
        return not any(
            (self.primary_fs, self.primary_fset, self.inode_limit, self.remote_cluster, self.remote_fs)
        )


class ClusterConfig(BaseModel):
    """One declared cluster."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str = Field("", description="Cluster ID as reported by the management API")
    primary: Optional[PrimaryConfig] = None
    secure_ssl_mode: bool = Field(False, alias="secureSslMode")
    cacert: str = Field("", description="CA certificate file name under the cacert base path")
    secrets: str = Field("", description="Secret directory name under the secrets base path")
    rest_api: List[RestApi] = Field(default_factory=list, alias="restApi")

    # Resolved by load_scale_config, never read from the declaration
    mgmt_username: str = Field("", exclude=True, repr=False)
    mgmt_password: str = Field("", exclude=True, repr=False)
    cacert_value: Optional[bytes] = Field(None, exclude=True, repr=False)

    @field_validator("primary")
    def drop_empty_primary(cls, v: Optional[PrimaryConfig]) -> Optional[PrimaryConfig]:
        # An empty "primary": {} block is how non-primary clusters are written
        if v is not None and v.is_empty():
            return None
        return v


class ScaleSettingsConfigMap(BaseModel):
    """The whole multi-cluster declaration."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    clusters: List[ClusterConfig] = Field(default_factory=list)

    def primary_cluster(self) -> Optional[ClusterConfig]:
        for cluster in self.clusters:
            if cluster.primary is not None:
                return cluster
        return None


def _read_secret(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8").strip()
    except FileNotFoundError:
        LOG.warning("Secret file %s not found", path)
        return ""
    except OSError as e:
        raise ScaleConfigError(details=f"cannot read secret file {path}: {e}")


def _attach_credentials(cluster: ClusterConfig, secrets_base_path: Path, cacert_base_path: Path) -> ClusterConfig:
    update = {}
    if cluster.secrets:
        secret_dir = secrets_base_path / cluster.secrets
        update["mgmt_username"] = _read_secret(secret_dir / "username")
        update["mgmt_password"] = _read_secret(secret_dir / "password")

    if cluster.secure_ssl_mode and cluster.cacert:
        cert_path = cacert_base_path / cluster.cacert
        try:
            update["cacert_value"] = cert_path.read_bytes()
        except FileNotFoundError:
            LOG.warning("CA certificate %s for cluster %s not found", cert_path, cluster.id)
        except OSError as e:
            raise ScaleConfigError(details=f"cannot read CA certificate {cert_path}: {e}")

    return cluster.model_copy(update=update)


def parse_scale_config(raw: str) -> ScaleSettingsConfigMap:
    """
    Parse a JSON cluster declaration.

    Raises:
        ScaleConfigError: If the document is not valid JSON or has wrongly typed fields
    """
    try:
        return ScaleSettingsConfigMap.model_validate_json(raw)
    except ValidationError as e:
        raise ScaleConfigError(details=f"malformed cluster declaration: {e}")


def load_scale_config(
    config_path,
    secrets_base_path=DEFAULT_SECRETS_BASE_PATH,
    cacert_base_path=DEFAULT_CACERT_BASE_PATH,
) -> ScaleSettingsConfigMap:
    """
    Load the cluster declaration and attach credentials to every cluster.

    Missing secret or certificate files are not an error here; the fields stay
    empty and the validator reports them with the cluster they belong to.

    Args:
        config_path: Path to the JSON declaration
        secrets_base_path: Directory holding one sub-directory per secret
        cacert_base_path: Directory holding CA certificate files

    Returns:
        ScaleSettingsConfigMap with credentials resolved

    Raises:
        ScaleConfigError: If the declaration cannot be read or parsed
    """
    path = Path(config_path)
    LOG.debug("Loading Spectrum Scale configuration from %s", path)
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ScaleConfigError(details=f"cannot read {path}: {e}")

    settings = parse_scale_config(raw)
    clusters = [
        _attach_credentials(cluster, Path(secrets_base_path), Path(cacert_base_path))
        for cluster in settings.clusters
    ]
    return settings.model_copy(update={"clusters": clusters})
