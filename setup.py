#!/usr/bin/env python3
"""
Setup script for the LIT node RPC client
"""

from setuptools import setup, find_packages

setup(
    name="litclient",
    version="0.1.0",
    description="Async JSON-RPC websocket client for LIT lightning nodes",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "websockets>=15.0",
        "click>=8.1.7",
        "typer>=0.12.3",
        "rich>=13.9.2",
        "aioconsole>=0.8.1",
        "PyYAML>=6.0.1",
    ],
    extras_require={
        "test": [
            "pytest>=8.4.2",
            "pytest-asyncio>=1.2.0",
        ],
    },
    python_requires=">=3.9",
    entry_points={
        'console_scripts': [
            'lit-client=litclient.lit_cli:main',
        ],
    },
)
