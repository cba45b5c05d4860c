#!/usr/bin/env python3
"""
Port Checker v1.0.0 - Setup Configuration
=========================================

Local port inspector: open/closed check, protocol sniffing and
bound-process lookup for a single loopback TCP port.

Installation:
    python -m pip install .

    OR (development mode):
    pip install -e ".[dev]"

    Creates 'port-checker' console script globally.
"""

from setuptools import setup, find_packages
from pathlib import Path

# Read long description from README
readme_path = Path(__file__).parent / "README.md"
long_description = readme_path.read_text(encoding="utf-8") if readme_path.exists() else ""

# Core dependencies
REQUIRED_PACKAGES = [
    "requests>=2.28.0",     # HTTP(S) fingerprint probe
    "urllib3>=1.26.0",      # InsecureRequestWarning filtering for the HTTPS probe
    "colorama>=0.4.6",      # Cross-platform colored output
    "jsonschema>=4.0.0",    # Config file validation
    "psutil>=5.9.0",        # Listening socket / process lookup and termination
]

# Optional development dependencies
EXTRAS_REQUIRE = {
    "dev": [
        "pytest>=7.0.0",    # Testing
        "pytest-cov>=4.0.0", # Coverage reporting
        "black>=22.0.0",    # Code formatting
        "pylint>=2.14.0",   # Linting
        "mypy>=0.950",      # Type checking
    ],
}

setup(
    # Package Information
    name="port-checker",
    version="1.0.0",
    author="Port Checker Team",
    description="Check a local TCP port, identify its protocol and the process bound to it",
    long_description=long_description,
    long_description_content_type="text/markdown",

    # Classification
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: Developers",
        "Intended Audience :: System Administrators",
        "Natural Language :: English",
        "Operating System :: POSIX :: Linux",
        "Operating System :: MacOS",
        "Operating System :: Microsoft :: Windows",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: System :: Networking",
        "Topic :: System :: Networking :: Monitoring",
        "Topic :: Utilities",
    ],

    # Keywords for searching
    keywords=[
        "network",
        "port",
        "port-checker",
        "service-detection",
        "banner-grabbing",
        "lsof",
        "kill-port",
    ],

    # Package Configuration
    packages=find_packages(exclude=["tests", "tests.*"]),
    include_package_data=True,

    # Python Version Requirement
    python_requires=">=3.8",

    # Dependencies
    install_requires=REQUIRED_PACKAGES,
    extras_require=EXTRAS_REQUIRE,

    # Entry Points (Console Scripts)
    entry_points={
        "console_scripts": [
            "port-checker=port_checker.cli:main",
        ],
    },

    zip_safe=False,
)
