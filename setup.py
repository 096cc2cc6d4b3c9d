# SPDX-License-Identifier: MIT
# Copyright (c) 2025 remote-config contributors

"""Setup configuration for remote-config package."""

from pathlib import Path

from setuptools import find_packages, setup

this_directory = Path(__file__).parent
long_description = (this_directory / "README.md").read_text(encoding="utf-8")

setup(
    name="remote-config",
    version="0.1.0",
    author="remote-config contributors",
    description="Read, write and watch configuration stored in Consul KV or HashiCorp Vault",
    long_description=long_description,
    long_description_content_type="text/markdown",
    license="MIT",
    packages=find_packages(include=["remote_config", "remote_config.*", "remote_logging", "remote_logging.*"]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.12",
    ],
    python_requires=">=3.10",
    install_requires=[
        "hvac>=1.1.0",
        "py-consul>=1.2.0",
        "requests>=2.28.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
        ],
    },
)
