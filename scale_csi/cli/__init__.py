"""
Command line interface for the Spectrum Scale CSI bootstrap.
"""
