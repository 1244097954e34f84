#!/usr/bin/env python3
"""
Main CLI entry point using Typer.
"""

import json
import socket
import sys
from typing import List, Optional

import typer
from oslo_log import log as logging

from scale_csi import __version__
from scale_csi.configuration import CONF_GROUP, build_conf
from scale_csi.driver import ScaleDriver
from scale_csi.exceptions import ScaleCSIException
from scale_csi.settings import load_scale_config
from scale_csi.validators import validate_scale_config

DEFAULT_DRIVER_NAME = "spectrumscale.csi.ibm.com"

app = typer.Typer(
    name="scale-csi",
    help="Spectrum Scale CSI primary fileset bootstrap",
    add_completion=False,
)


def _load_conf(config_file: Optional[List[str]], debug: bool):
    conf = build_conf(config_file)
    # stdout carries command output only
    conf.set_default("use_stderr", True)
    if debug:
        conf.set_override("debug", True)
    logging.setup(conf, "scale-csi")
    return conf


@app.command("validate-config")
def validate_config(
    config_file: Optional[List[str]] = typer.Option(None, "--config-file", help="oslo.config INI file"),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
):
    """
    Load the cluster declaration and check it without contacting any cluster.
    """
    try:
        conf = _load_conf(config_file, debug)
        group = getattr(conf, CONF_GROUP)
        config = load_scale_config(group.config_path, group.secrets_base_path, group.cacert_base_path)
        validate_scale_config(config)
        typer.echo(f"Configuration {group.config_path} is valid ({len(config.clusters)} clusters)")
    except ScaleCSIException as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)


@app.command()
def bootstrap(
    config_file: Optional[List[str]] = typer.Option(None, "--config-file", help="oslo.config INI file"),
    driver_name: str = typer.Option(DEFAULT_DRIVER_NAME, "--driver-name", help="CSI driver name"),
    node_id: Optional[str] = typer.Option(None, "--node-id", help="Node ID (default: host name)"),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
):
    """
    Resolve the topology, ensure the primary fileset and the symlink directory.

    Prints the resolved topology as JSON. Safe to run repeatedly.
    """
    try:
        conf = _load_conf(config_file, debug)
        driver = ScaleDriver(conf)
        topology = driver.setup(driver_name, __version__, node_id or socket.gethostname())
        try:
            typer.echo(json.dumps(topology.to_dict(), indent=2))
        finally:
            topology.close()
    except ScaleCSIException as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)


def main() -> int:
    """Main entry point."""
    try:
        app()
        return 0
    except KeyboardInterrupt:
        typer.echo("\nOperation cancelled by user", err=True)
        return 130
    except Exception as e:
        typer.echo(f"Error: {e}", err=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
