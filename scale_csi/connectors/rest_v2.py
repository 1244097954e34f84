"""REST API v2 connector for the Spectrum Scale management GUI."""

import os
import tempfile
import time
from typing import Any, Dict, Optional
from urllib.parse import quote

import requests
from oslo_log import log as logging
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..configuration import CONF_GROUP
from ..exceptions import (
    ScaleAPIError,
    ScaleAPITimeout,
    ScaleConfigError,
    ScaleConnectivityError,
    ScaleFilesetNotFound,
    ScaleJobFailed,
)
from .base import (
    USER_SPECIFIED_INODE_LIMIT,
    USER_SPECIFIED_LINK_PATH,
    FilesetInfo,
    FilesystemMountDetails,
    SpectrumScaleConnector,
)

LOG = logging.getLogger(__name__)

API_PREFIX = "/scalemgmt/v2"

JOB_COMPLETED = "COMPLETED"
JOB_FAILED = "FAILED"

# Message code of the management API for a directory that already exists
DIRECTORY_EXISTS_CODE = "EFSSG0762C"


class ScaleRestConnector(SpectrumScaleConnector):
    """Connector talking to one cluster's management API (REST v2).

    Mutating calls return an asynchronous job; every mutating method waits for
    its job to finish before returning.
    """

    def __init__(
        self,
        api_endpoint: str,
        username: str,
        password: str,
        timeout: int = 60,
        retry_count: int = 3,
        verify_ssl: bool = False,
        ca_bundle: Optional[str] = None,
        job_poll_interval: float = 2.0,
        job_timeout: int = 300,
    ):
        """Initialize the connector.

        Args:
            api_endpoint: GUI URL (e.g., https://gui.example.com:443)
            username: Management API user
            password: Management API password
            timeout: HTTP request timeout in seconds
            retry_count: Number of retries for GET requests
            verify_ssl: Whether to verify SSL certificates
            ca_bundle: Path to CA bundle file; implies verification
            job_poll_interval: Seconds between job status polls
            job_timeout: Seconds to wait for a job before giving up
        """
        self.base_url = api_endpoint.rstrip("/")
        self.timeout = timeout
        self.retry_count = retry_count
        self.job_poll_interval = job_poll_interval
        self.job_timeout = job_timeout
        self.ca_bundle = ca_bundle

        if ca_bundle:
            self.verify_ssl = ca_bundle
        else:
            self.verify_ssl = verify_ssl

        self.session = requests.Session()
        self.session.auth = (username, password)
        self.session.headers.update({"Accept": "application/json"})

        # Only retry safe methods (GET) to avoid duplicate operations
        retry_strategy = Retry(
            total=retry_count,
            backoff_factor=1,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["GET"],
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)

    def _make_request(
        self,
        method: str,
        path: str,
        json_data: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Make HTTP request to the management API.

        Args:
            method: HTTP method
            path: Path below /scalemgmt/v2 (e.g., /cluster)
            json_data: Request body as JSON
            params: Query parameters

        Returns:
            Response data dictionary (empty dict for 204 No Content)

        Raises:
            ScaleAPITimeout: Request timed out
            ScaleConnectivityError: Connection failed
            ScaleAPIError: API returned an error status
        """
        url = f"{self.base_url}{API_PREFIX}{path}"
        LOG.debug("Making %s request to %s with params=%s, json_data=%s", method, path, params, json_data)

        try:
            response = self.session.request(
                method=method,
                url=url,
                json=json_data,
                params=params,
                timeout=self.timeout,
                verify=self.verify_ssl,
            )
        except requests.exceptions.Timeout:
            LOG.error("Request timeout after %ss: %s", self.timeout, path)
            raise ScaleAPITimeout(timeout=self.timeout)
        except requests.exceptions.ConnectionError as e:
            LOG.error("Connection error: %s, %s", path, e)
            raise ScaleConnectivityError(details=str(e))
        except requests.exceptions.RequestException as e:
            LOG.error("Request exception: %s, %s", path, e)
            raise ScaleAPIError(details=str(e))

        LOG.debug("Response status: %s", response.status_code)

        if response.status_code >= 400:
            try:
                error_data = response.json()
                error_msg = error_data.get("status", {}).get("message") or response.text
            except ValueError:
                error_msg = response.text
            raise ScaleAPIError(
                details=f"HTTP {response.status_code}: {error_msg}",
                status_code=response.status_code,
            )

        if response.status_code == 204:
            return {}

        try:
            return response.json()
        except ValueError:
            raise ScaleAPIError(details=f"non-JSON response from {path}")

    def _wait_for_job(self, response: Dict[str, Any]) -> Dict[str, Any]:
        """Poll the job returned by a mutating request until it finishes.

        Returns:
            The finished job dictionary

        Raises:
            ScaleJobFailed: Job failed or did not finish within job_timeout
        """
        jobs = response.get("jobs") or []
        if not jobs:
            # Synchronous completion
            return {}
        job_id = jobs[0].get("jobId")
        deadline = time.monotonic() + self.job_timeout

        while True:
            job_response = self._make_request("GET", f"/jobs/{job_id}")
            job = (job_response.get("jobs") or [{}])[0]
            status = job.get("status", "")

            if status == JOB_COMPLETED:
                LOG.debug("Job %s completed", job_id)
                return job
            if status == JOB_FAILED:
                result = job.get("result", {})
                details = " ".join(result.get("stderr") or []) or result.get("message", "") or "job failed"
                raise ScaleJobFailed(job_id=job_id, details=details)
            if time.monotonic() >= deadline:
                raise ScaleJobFailed(job_id=job_id, details=f"still {status or 'unknown'} after {self.job_timeout}s")

            time.sleep(self.job_poll_interval)

    def get_cluster_id(self) -> str:
        response = self._make_request("GET", "/cluster")
        cluster_id = response.get("cluster", {}).get("clusterSummary", {}).get("clusterId")
        if cluster_id is None:
            raise ScaleAPIError(details="cluster ID missing from cluster summary")
        return str(cluster_id)

    def get_filesystem_mount_details(self, filesystem: str) -> FilesystemMountDetails:
        response = self._make_request(
            "GET", f"/filesystems/{quote(filesystem, safe='')}", params={"fields": "mount"}
        )
        filesystems = response.get("filesystems") or []
        if not filesystems:
            raise ScaleAPIError(details=f"filesystem {filesystem} not reported by cluster")
        mount = filesystems[0].get("mount", {})
        return FilesystemMountDetails(
            mount_point=mount.get("mountPoint", ""),
            nodes_mounted=list(mount.get("nodesMounted") or []),
        )

    def list_fileset(self, filesystem: str, name: str) -> FilesetInfo:
        path = f"/filesystems/{quote(filesystem, safe='')}/filesets/{quote(name, safe='')}"
        try:
            response = self._make_request("GET", path)
        except ScaleAPIError as e:
            # The GUI answers 400 "Invalid value in 'filesetName'" for unknown filesets
            if e.status_code in (400, 404):
                raise ScaleFilesetNotFound(fileset=name, filesystem=filesystem)
            raise

        filesets = response.get("filesets") or []
        if not filesets:
            raise ScaleFilesetNotFound(fileset=name, filesystem=filesystem)
        config = filesets[0].get("config") or {}
        return FilesetInfo(name=name, link_path=config.get("path") or "")

    def create_fileset(self, filesystem: str, name: str, opts: Dict[str, Any]) -> None:
        data: Dict[str, Any] = {"filesetName": name, "inodeSpace": "new"}
        if opts.get(USER_SPECIFIED_LINK_PATH):
            data["path"] = opts[USER_SPECIFIED_LINK_PATH]
        if opts.get(USER_SPECIFIED_INODE_LIMIT):
            data["maxNumInodes"] = opts[USER_SPECIFIED_INODE_LIMIT]
            data["allocInodes"] = opts[USER_SPECIFIED_INODE_LIMIT]

        response = self._make_request(
            "POST", f"/filesystems/{quote(filesystem, safe='')}/filesets", json_data=data
        )
        self._wait_for_job(response)
        LOG.info("Created fileset %s on filesystem %s", name, filesystem)

    def link_fileset(self, filesystem: str, name: str, link_path: str) -> None:
        response = self._make_request(
            "POST",
            f"/filesystems/{quote(filesystem, safe='')}/filesets/{quote(name, safe='')}/link",
            json_data={"path": link_path},
        )
        self._wait_for_job(response)
        LOG.info("Linked fileset %s on filesystem %s at %s", name, filesystem, link_path)

    def make_directory(self, filesystem: str, path: str, uid: int, gid: int) -> None:
        data = {"user": {"uid": uid}, "group": {"gid": gid}}
        try:
            response = self._make_request(
                "POST",
                f"/filesystems/{quote(filesystem, safe='')}/directory/{quote(path, safe='')}",
                json_data=data,
            )
            self._wait_for_job(response)
        except (ScaleAPIError, ScaleJobFailed) as e:
            if _directory_exists_error(e):
                LOG.debug("Directory %s already exists on filesystem %s", path, filesystem)
                return
            raise
        LOG.info("Created directory %s on filesystem %s", path, filesystem)

    def close(self):
        """Close the HTTP session and drop the temporary CA bundle."""
        if self.session:
            self.session.close()
        if self.ca_bundle and os.path.exists(self.ca_bundle):
            os.unlink(self.ca_bundle)
            self.ca_bundle = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


def _directory_exists_error(error: Exception) -> bool:
    text = str(error)
    if DIRECTORY_EXISTS_CODE in text:
        return True
    text = text.lower()
    return "file exists" in text or "already exists" in text


def _write_ca_bundle(cacert_value: bytes) -> str:
    fd, path = tempfile.mkstemp(prefix="scale-cacert-", suffix=".pem")
    with os.fdopen(fd, "wb") as fh:
        fh.write(cacert_value)
    return path


def get_connector(cluster, conf=None) -> ScaleRestConnector:
    """Build a connector for a declared cluster.

    Args:
        cluster: ClusterConfig with credentials attached
        conf: Optional ConfigOpts carrying the spectrum_scale group

    Returns:
        ScaleRestConnector bound to the cluster's first REST endpoint

    Raises:
        ScaleConfigError: If the cluster declares no REST endpoint
    """
    if not cluster.rest_api:
        raise ScaleConfigError(details=f"no REST endpoint declared for cluster '{cluster.id}'")
    endpoint = cluster.rest_api[0]

    kwargs: Dict[str, Any] = {}
    if conf is not None:
        group = getattr(conf, CONF_GROUP)
        kwargs = {
            "timeout": group.api_timeout,
            "retry_count": group.api_retry_count,
            "job_poll_interval": group.job_poll_interval,
            "job_timeout": group.job_timeout,
        }

    ca_bundle = None
    if cluster.secure_ssl_mode and cluster.cacert_value:
        ca_bundle = _write_ca_bundle(cluster.cacert_value)

    return ScaleRestConnector(
        api_endpoint=f"https://{endpoint.gui_host}:{endpoint.gui_port}",
        username=cluster.mgmt_username,
        password=cluster.mgmt_password,
        verify_ssl=cluster.secure_ssl_mode,
        ca_bundle=ca_bundle,
        **kwargs,
    )
