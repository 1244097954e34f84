"""
Spectrum Scale CSI - primary volume-root bootstrap for a Spectrum Scale CSI plugin.

This package validates the multi-cluster declaration, resolves which cluster and
filesystem host the primary fileset, materializes that fileset and the volume
symlink directory, and publishes the resulting topology to the rest of the driver.
"""

__version__ = "0.1.0"
__all__ = ["bootstrap", "cli", "connectors"]
