#!/usr/bin/env python3
"""
Setup script for influxdb-publisher.
Installs the influxdb_publisher package only; tests are not shipped.
"""

from setuptools import setup, find_packages

setup(
    name="influxdb-publisher",
    version="1.0.0",
    description="Publish build metrics (coverage, analysis, load tests, custom data) to InfluxDB",
    python_requires=">=3.9",
    packages=find_packages(include=["influxdb_publisher", "influxdb_publisher.*"]),
    install_requires=[
        "httpx>=0.26",
        "pydantic>=2.0",
        "PyYAML>=6.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
)
