"""Build command: build an image in IBM Cloud Container Registry.

Usage:
    icrbuild --tag us.icr.io/NAMESPACE/IMAGE:TAG DIRECTORY
"""

from .handlers import handle
from .parser import register_arguments

__all__ = ["register_arguments", "handle"]
