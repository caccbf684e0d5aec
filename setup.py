#!/usr/bin/env python3

"""
Setup script for Rig-Listener
Installs the rig_listener package and its dependencies.

Part of the Rig-Listener project.
"""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="rig-listener",
    version="1.0.0",
    author="",
    author_email="",
    description="A bridge between amateur-radio transceivers and a browser dashboard over HTTP and SSE",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    include_package_data=True,
    install_requires=[
        "pyserial>=3.5",
        "aiohttp>=3.9",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
            "pytest-asyncio>=0.21",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: End Users/Desktop",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Communications :: Ham Radio",
    ],
    python_requires=">=3.9",
    entry_points={
        "console_scripts": [
            "rig-listener=rig_listener.main:main",
        ],
    },
)
