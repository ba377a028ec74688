"""Build container images in IBM Cloud Container Registry."""

__version__ = "1.0.0"
