"""Spectrum Scale CSI driver setup.

Holds the driver identity, the capabilities it advertises and the topology
resolved at start-up. Transport servers are built elsewhere on top of it.
"""

from enum import Enum
from typing import List, Optional

from oslo_log import log as logging

from .bootstrap import ResolvedTopology, run_bootstrap
from .exceptions import ScaleConfigError, ScaleInvalidRequest

LOG = logging.getLogger(__name__)

VERSION = "1.0.0"


class VolumeAccessMode(str, Enum):
    SINGLE_NODE_WRITER = "SINGLE_NODE_WRITER"
    SINGLE_NODE_READER_ONLY = "SINGLE_NODE_READER_ONLY"
    MULTI_NODE_READER_ONLY = "MULTI_NODE_READER_ONLY"
    MULTI_NODE_SINGLE_WRITER = "MULTI_NODE_SINGLE_WRITER"
    MULTI_NODE_MULTI_WRITER = "MULTI_NODE_MULTI_WRITER"


class ControllerCapability(str, Enum):
    UNKNOWN = "UNKNOWN"
    CREATE_DELETE_VOLUME = "CREATE_DELETE_VOLUME"
    PUBLISH_UNPUBLISH_VOLUME = "PUBLISH_UNPUBLISH_VOLUME"
    LIST_VOLUMES = "LIST_VOLUMES"
    GET_CAPACITY = "GET_CAPACITY"
    CREATE_DELETE_SNAPSHOT = "CREATE_DELETE_SNAPSHOT"


class NodeCapability(str, Enum):
    UNKNOWN = "UNKNOWN"
    STAGE_UNSTAGE_VOLUME = "STAGE_UNSTAGE_VOLUME"
    GET_VOLUME_STATS = "GET_VOLUME_STATS"


class ScaleDriver:
    """Spectrum Scale CSI driver.

    Version history:
        1.0.0 - Initial implementation
    """

    VERSION = VERSION

    def __init__(self, conf):
        """Initialize the driver.

        Args:
            conf: ConfigOpts with the spectrum_scale group registered
        """
        self.conf = conf
        self.name: Optional[str] = None
        self.vendor_version: Optional[str] = None
        self.node_id: Optional[str] = None
        self.topology: Optional[ResolvedTopology] = None

        self.volume_access_modes: List[VolumeAccessMode] = []
        self.controller_capabilities: List[ControllerCapability] = []
        self.node_capabilities: List[NodeCapability] = []

    def add_volume_access_modes(self, modes: List[VolumeAccessMode]) -> None:
        for mode in modes:
            LOG.debug("Enabling volume access mode: %s", mode.value)
        self.volume_access_modes = list(modes)

    def add_controller_capabilities(self, capabilities: List[ControllerCapability]) -> None:
        for capability in capabilities:
            LOG.debug("Enabling controller service capability: %s", capability.value)
        self.controller_capabilities = list(capabilities)

    def add_node_capabilities(self, capabilities: List[NodeCapability]) -> None:
        for capability in capabilities:
            LOG.debug("Enabling node service capability: %s", capability.value)
        self.node_capabilities = list(capabilities)

    def validate_controller_service_request(self, capability: ControllerCapability) -> None:
        """Check that a controller RPC is backed by a registered capability.

        Raises:
            ScaleInvalidRequest: Capability not registered
        """
        if capability == ControllerCapability.UNKNOWN:
            return
        if capability in self.controller_capabilities:
            return
        raise ScaleInvalidRequest(details=f"capability {capability.value} not supported")

    def setup(self, name: str, vendor_version: str, node_id: str, hostpath: Optional[str] = None) -> ResolvedTopology:
        """Bootstrap the primary fileset and register capabilities.

        Args:
            name: Driver name
            vendor_version: Driver version string
            node_id: ID of the node this instance runs on
            hostpath: Bind-mounted host path; read from SCALE_HOSTPATH when omitted

        Returns:
            ResolvedTopology

        Raises:
            ScaleConfigError: Driver name missing
            ScaleBootstrapError: Bootstrap failed
        """
        LOG.debug("Setting up driver. name: %s, version: %s, nodeID: %s", name, vendor_version, node_id)
        if not name:
            raise ScaleConfigError(details="driver name missing")

        topology = run_bootstrap(self.conf, hostpath=hostpath)

        self.name = name
        self.vendor_version = vendor_version
        self.node_id = node_id

        self.add_volume_access_modes([VolumeAccessMode.MULTI_NODE_MULTI_WRITER])
        self.add_controller_capabilities(
            [
                ControllerCapability.CREATE_DELETE_VOLUME,
                ControllerCapability.PUBLISH_UNPUBLISH_VOLUME,
            ]
        )
        self.add_node_capabilities([NodeCapability.STAGE_UNSTAGE_VOLUME])

        self.topology = topology
        LOG.info("Driver: %s version: %s initialized", name, vendor_version)
        return topology
