"""Domain objects describing entities, their fields and associations."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Protocol, Sequence

NAMESPACE_SEPARATOR = "\\"


def dotted_name(value: str) -> str:
    """Return ``value`` with namespace separators rendered as dots."""
    return value.replace(NAMESPACE_SEPARATOR, ".")


@dataclass(frozen=True)
class AssociationMapping:
    is_owning_side: bool = True
    inversed_by: Optional[str] = None
    mapped_by: Optional[str] = None


class EntityDescriptor(Protocol):
    """Read-only view of one mapped class.

    Field and association accessors only report members declared on the
    entity itself; ``parent_name`` names the direct superclass, if mapped.
    """

    name: str

    def field_names(self) -> Sequence[str]: ...

    def is_identifier(self, field_name: str) -> bool: ...

    def association_names(self) -> Sequence[str]: ...

    def association_target_name(self, association: str) -> str: ...

    def is_association_inverse_side(self, association: str) -> bool: ...

    def is_collection_valued_association(self, association: str) -> bool: ...

    def association_mapping(self, association: str) -> AssociationMapping: ...

    def parent_name(self) -> Optional[str]: ...


@dataclass
class Field:
    name: str
    identifier: bool = False


@dataclass
class Association:
    name: str
    target: str
    collection: bool = False
    owning: bool = True
    inversed_by: Optional[str] = None
    mapped_by: Optional[str] = None

    @property
    def mapping(self) -> AssociationMapping:
        return AssociationMapping(
            is_owning_side=self.owning,
            inversed_by=self.inversed_by,
            mapped_by=self.mapped_by,
        )


@dataclass
class Entity:
    """Plain :class:`EntityDescriptor` implementation used by the loaders."""

    name: str
    fields: List[Field] = field(default_factory=list)
    associations: List[Association] = field(default_factory=list)
    parent: Optional[str] = None

    def field_names(self) -> List[str]:
        return [item.name for item in self.fields]

    def is_identifier(self, field_name: str) -> bool:
        return any(item.identifier for item in self.fields if item.name == field_name)

    def association_names(self) -> List[str]:
        return [item.name for item in self.associations]

    def association_target_name(self, association: str) -> str:
        return self._association(association).target

    def is_association_inverse_side(self, association: str) -> bool:
        return not self._association(association).owning

    def is_collection_valued_association(self, association: str) -> bool:
        return self._association(association).collection

    def association_mapping(self, association: str) -> AssociationMapping:
        return self._association(association).mapping

    def parent_name(self) -> Optional[str]:
        return self.parent

    def _association(self, association: str) -> Association:
        by_name: Dict[str, Association] = {item.name: item for item in self.associations}
        try:
            return by_name[association]
        except KeyError:
            raise KeyError(f"{self.name} has no association named '{association}'") from None
