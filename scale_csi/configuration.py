"""Configuration options for the Spectrum Scale CSI bootstrap."""

from oslo_config import cfg
from oslo_log import log as logging

# Configuration group name
CONF_GROUP = "spectrum_scale"

DEFAULT_CONFIG_PATH = "/var/lib/ibm/config/spectrum-scale-config.json"
DEFAULT_SECRETS_BASE_PATH = "/var/lib/ibm"
DEFAULT_CACERT_BASE_PATH = "/var/lib/ibm/ssl/public"


def _get_scale_opts():
    """Get Spectrum Scale CSI configuration options.

    Returns:
        List of oslo_config options
    """
    return [
        # Cluster declaration
        cfg.StrOpt(
            "config_path",
            default=DEFAULT_CONFIG_PATH,
            help="Path to the JSON cluster declaration mounted from the config map",
        ),
        cfg.StrOpt(
            "secrets_base_path",
            default=DEFAULT_SECRETS_BASE_PATH,
            help=(
                "Directory holding one sub-directory per cluster secret. "
                "Each sub-directory must contain 'username' and 'password' files."
            ),
        ),
        cfg.StrOpt(
            "cacert_base_path",
            default=DEFAULT_CACERT_BASE_PATH,
            help="Directory holding CA certificates referenced by 'cacert' in the declaration",
        ),
        # Management API
        cfg.IntOpt(
            "api_timeout",
            default=60,
            min=1,
            max=600,
            help="Management API request timeout in seconds",
        ),
        cfg.IntOpt(
            "api_retry_count",
            default=3,
            min=0,
            max=10,
            help="Number of retries for idempotent (GET) management API requests",
        ),
        cfg.FloatOpt(
            "job_poll_interval",
            default=2.0,
            min=0.0,
            help="Seconds between polls of an asynchronous management API job",
        ),
        cfg.IntOpt(
            "job_timeout",
            default=300,
            min=1,
            help="Seconds to wait for an asynchronous management API job to finish",
        ),
        # Bootstrap
        cfg.IntOpt(
            "bootstrap_workers",
            default=4,
            min=1,
            max=64,
            help="Maximum number of clusters queried in parallel during bootstrap",
        ),
    ]


def register_opts(conf, group=None):
    """Register Spectrum Scale CSI configuration options.

    Args:
        conf: oslo_config.cfg.ConfigOpts instance
        group: Configuration group name (default: CONF_GROUP)
    """
    if group is None:
        group = CONF_GROUP
    conf.register_opts(_get_scale_opts(), group=group)


def list_opts():
    """Return a list of options for oslo-config-generator.

    Returns:
        List of (group_name, options) tuples
    """
    return [
        (CONF_GROUP, _get_scale_opts()),
    ]


def get_scale_opts():
    """Get Spectrum Scale CSI configuration options (public API)."""
    return _get_scale_opts()


def build_conf(config_files=None):
    """Create a parsed ConfigOpts with scale and logging options registered.

    Args:
        config_files: Optional list of INI files to read

    Returns:
        oslo_config.cfg.ConfigOpts instance
    """
    conf = cfg.ConfigOpts()
    register_opts(conf)
    logging.register_options(conf)
    conf(args=[], project="scale-csi", default_config_files=list(config_files or []))
    return conf
