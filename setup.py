#!/usr/bin/env python3
"""
Setup script for Spectrum Scale CSI bootstrap.
"""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

with open("requirements.txt", "r", encoding="utf-8") as fh:
    requirements = [line.strip() for line in fh if line.strip() and not line.startswith("#")]

packages = find_packages(where=".", include=["scale_csi", "scale_csi.*"])

setup(
    name="scale-csi",
    version="0.1.0",
    author="Spectrum Scale CSI Project",
    description="Primary fileset bootstrap and cluster topology resolver for a Spectrum Scale CSI plugin",
    long_description=long_description,
    long_description_content_type="text/markdown",
    license="Apache-2.0",
    packages=packages,
    package_dir={"": "."},
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: System Administrators",
        "License :: OSI Approved :: Apache Software License",
        "Operating System :: POSIX :: Linux",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    python_requires=">=3.9",
    install_requires=requirements,
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "scale-csi=scale_csi.cli.cli:main",
        ],
        "oslo.config.opts": [
            "scale_csi = scale_csi.configuration:list_opts",
        ],
    },
)
