"""Spectrum Scale CSI exceptions."""


class ScaleCSIException(Exception):
    """Base exception for Spectrum Scale CSI errors."""

    message = "An unknown exception occurred."

    def __init__(self, message=None, **kwargs):
        """Initialize exception with optional custom message."""
        self.kwargs = kwargs
        if message:
            self.message = message
        super(ScaleCSIException, self).__init__(self.message % kwargs)


class ScaleConfigError(ScaleCSIException):
    """Structurally invalid or incomplete cluster declaration."""

    message = "Invalid Spectrum Scale configuration: %(details)s"


class ScaleConnectivityError(ScaleCSIException):
    """A management API call could not be completed."""

    message = "Failed to reach Spectrum Scale management API: %(details)s"


class ScaleAPITimeout(ScaleConnectivityError):
    """API timeout error."""

    message = "Spectrum Scale management API request timed out after %(timeout)s seconds"


class ScaleAPIError(ScaleConnectivityError):
    """API returned an error response."""

    message = "Spectrum Scale management API error: %(details)s"

    def __init__(self, message=None, status_code=None, **kwargs):
        self.status_code = status_code
        super(ScaleAPIError, self).__init__(message, **kwargs)


class ScaleJobFailed(ScaleConnectivityError):
    """Asynchronous management job failed or did not complete in time."""

    message = "Job %(job_id)s did not complete: %(details)s"


class ScaleConsistencyError(ScaleCSIException):
    """Remote state contradicts the declaration or the local deployment.

    Raised for a cluster identity mismatch, a filesystem that is not mounted on
    any node, or a host path that cannot reach the primary fileset.
    """

    message = "Consistency check failed: %(details)s"


class ScaleResourceStateError(ScaleCSIException):
    """Fileset exists in a state the bootstrap does not know how to handle."""

    message = "Fileset %(fileset)s on filesystem %(filesystem)s is in an unexpected state: %(details)s"


class ScaleFilesetNotFound(ScaleCSIException):
    """Fileset not found on the filesystem."""

    message = "Fileset %(fileset)s not found on filesystem %(filesystem)s"


class ScaleInvalidRequest(ScaleCSIException):
    """Request for a capability the driver did not register."""

    message = "Invalid controller service request: %(details)s"


class ScaleBootstrapError(ScaleCSIException):
    """Bootstrap aborted.

    The stage that failed is kept in ``stage`` and the underlying error in
    ``cause`` (also chained as ``__cause__``).
    """

    message = "Bootstrap failed during %(stage)s: %(reason)s"

    def __init__(self, message=None, cause=None, **kwargs):
        self.stage = kwargs.get("stage")
        self.cause = cause
        super(ScaleBootstrapError, self).__init__(message, **kwargs)
