#!/usr/bin/env python3
"""Setup script for desklaunch."""

from setuptools import setup, find_packages


setup(
    name="desklaunch",
    version="1.0.0",
    description="Desktop integration launcher for sandboxed Linux applications",
    author="desklaunch Project",
    license="MIT",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.11",
    install_requires=[],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "desklaunch=desklaunch.launcher:main",
        ],
        "gui_scripts": [
            "desklaunch-gui=desklaunch.launcher:main",
        ],
    },
    classifiers=[
        "Development Status :: 5 - Production/Stable",
        "Environment :: X11 Applications :: GTK",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: POSIX :: Linux",
        "Programming Language :: Python :: 3",
        "Topic :: System :: Installation/Setup",
    ],
)
