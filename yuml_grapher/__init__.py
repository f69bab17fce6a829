"""Render object-relational entity metadata as yUML class diagrams."""

from importlib.metadata import version, PackageNotFoundError

from .errors import DescriptorContractError, GrapherError, MetadataLoadError
from .grapher import YUMLMetadataGrapher, generate
from .model import Association, AssociationMapping, Entity, EntityDescriptor, Field

try:
    __version__ = version("yuml-grapher")
except PackageNotFoundError:  # pragma: no cover
    __version__ = "0.0.0"

__all__ = [
    "Association",
    "AssociationMapping",
    "DescriptorContractError",
    "Entity",
    "EntityDescriptor",
    "Field",
    "GrapherError",
    "MetadataLoadError",
    "YUMLMetadataGrapher",
    "__version__",
    "generate",
]
