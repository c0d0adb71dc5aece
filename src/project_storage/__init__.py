"""Local .sb3 project storage server."""

__version__ = "0.1.0"
