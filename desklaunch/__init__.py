"""desklaunch: desktop integration launcher for sandboxed applications."""

__version__ = "1.0.0"
