"""Exceptions raised while loading metadata or generating diagrams."""
from __future__ import annotations


class GrapherError(RuntimeError):
    """Base class for every error surfaced to the command line."""


class MetadataLoadError(GrapherError):
    """Raised when entity metadata cannot be read or fails validation."""


class DescriptorContractError(GrapherError):
    """Raised when the descriptors handed to the grapher are unusable."""
