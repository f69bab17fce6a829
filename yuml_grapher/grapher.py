"""Build yUML ``dsl_text`` strings from a collection of entity descriptors."""
from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Set

from .errors import DescriptorContractError
from .model import EntityDescriptor, dotted_name

logger = logging.getLogger(__name__)

REQUIRED_CAPABILITIES = (
    "field_names",
    "is_identifier",
    "association_names",
    "association_target_name",
    "is_association_inverse_side",
    "is_collection_valued_association",
    "association_mapping",
    "parent_name",
)

FRAGMENT_SEPARATOR = ","


def multiplicity(collection: Optional[bool]) -> str:
    """Return ``*`` for to-many, ``1`` for to-one and nothing when unknown."""
    if collection is None:
        return ""
    return "*" if collection else "1"


class VisitLedger:
    """Remembers which classes and (class, association) pairs were drawn."""

    def __init__(self) -> None:
        self._visited: Dict[str, Set[str]] = {}

    def __contains__(self, class_name: str) -> bool:
        return class_name in self._visited

    def visit(self, class_name: str, association: Optional[str] = None) -> bool:
        """Mark a class (or one of its associations) as drawn.

        Returns ``True`` on the first visit and ``False`` afterwards.
        """
        if association is None:
            if class_name in self._visited:
                return False
            self._visited[class_name] = set()
            return True

        associations = self._visited.setdefault(class_name, set())
        if association in associations:
            return False
        associations.add(association)
        return True


class YUMLMetadataGrapher:
    """Generate yUML class diagram text from entity metadata.

    All bookkeeping lives on the instance and is rebuilt by every call to
    :meth:`generate_from_metadata`, so an instance can be reused.
    """

    def __init__(self) -> None:
        self.metadata: Dict[str, EntityDescriptor] = {}
        self.ledger = VisitLedger()
        self.class_strings: Dict[str, str] = {}

    def generate_from_metadata(self, metadata: Iterable[EntityDescriptor]) -> str:
        classes = list(metadata)
        self._store_classes(classes)

        fragments: List[str] = []
        for entity in classes:
            parent = self._get_parent(entity)
            if parent is not None:
                fragments.append(self._class_string(parent) + "^" + self._class_string(entity))

            associations = list(entity.association_names())
            if not associations and entity.name not in self.ledger:
                fragments.append(self._class_string(entity))
                continue

            inherited = set(parent.association_names()) if parent is not None else set()
            for association in associations:
                if association in inherited:
                    logger.debug("Skipping %s.%s, drawn at %s", entity.name, association, parent.name)
                    continue
                if self.ledger.visit(entity.name, association):
                    fragments.append(self._association_string(entity, association))
                else:
                    logger.debug("Skipping %s.%s, already drawn from the other side", entity.name, association)

        return FRAGMENT_SEPARATOR.join(fragments)

    def _association_string(self, class1: EntityDescriptor, association: str) -> str:
        target_name = class1.association_target_name(association)
        class2 = self.metadata.get(target_name)
        is_inverse = class1.is_association_inverse_side(association)
        class1_count = multiplicity(class1.is_collection_valued_association(association))

        if class2 is None:
            logger.debug("Target %s of %s.%s is not mapped", target_name, class1.name, association)
            return (
                self._class_string(class1)
                + ("<" if is_inverse else "<>")
                + "-"
                + association
                + " "
                + class1_count
                + ("<>" if is_inverse else ">")
                + "["
                + dotted_name(target_name)
                + "]"
            )

        class2_side_name = self._reverse_association_name(class1, association, class2)
        class2_collection: Optional[bool] = None
        bidirectional = False

        if class2_side_name is not None:
            if is_inverse or class2.is_association_inverse_side(class2_side_name):
                class2_collection = class2.is_collection_valued_association(class2_side_name)
                bidirectional = True

        self.ledger.visit(target_name, class2_side_name)

        return (
            self._class_string(class1)
            + (("<" if is_inverse else "<>") if bidirectional else "")
            + (class2_side_name + " " if class2_side_name else "")
            + multiplicity(class2_collection)
            + "-"
            + association
            + " "
            + class1_count
            + ("<>" if bidirectional and is_inverse else ">")
            + self._class_string(class2)
        )

    def _reverse_association_name(
        self, class1: EntityDescriptor, association: str, class2: EntityDescriptor
    ) -> Optional[str]:
        mapping = class1.association_mapping(association)
        if mapping.is_owning_side:
            reverse = mapping.inversed_by
        else:
            reverse = mapping.mapped_by

        if reverse is not None and reverse not in class2.association_names():
            logger.debug(
                "%s.%s refers to unknown association %s.%s, drawing it unidirectional",
                class1.name,
                association,
                class2.name,
                reverse,
            )
            return None
        return reverse

    def _class_string(self, entity: EntityDescriptor) -> str:
        class_name = entity.name
        if class_name not in self.class_strings:
            self.ledger.visit(class_name)

            parent = self._get_parent(entity)
            parent_fields = set(parent.field_names()) if parent is not None else set()
            fields = []
            for field_name in entity.field_names():
                if field_name in parent_fields:
                    continue
                fields.append("+" + field_name if entity.is_identifier(field_name) else field_name)

            class_text = "[" + dotted_name(class_name)
            if fields:
                class_text += "|" + ";".join(fields)
            class_text += "]"

            self.class_strings[class_name] = class_text

        return self.class_strings[class_name]

    def _get_parent(self, entity: EntityDescriptor) -> Optional[EntityDescriptor]:
        parent_name = entity.parent_name()
        if parent_name is None:
            return None
        return self.metadata.get(parent_name)

    def _store_classes(self, classes: List[EntityDescriptor]) -> None:
        self.metadata = {}
        self.ledger = VisitLedger()
        self.class_strings = {}

        for entity in classes:
            check_descriptor(entity)
            if entity.name in self.metadata:
                raise DescriptorContractError(f"Duplicate entity name '{entity.name}'.")
            self.metadata[entity.name] = entity


def check_descriptor(entity: object) -> None:
    name = getattr(entity, "name", None)
    if not isinstance(name, str) or not name:
        raise DescriptorContractError(f"Descriptor {entity!r} has no usable 'name'.")
    missing = [
        capability
        for capability in REQUIRED_CAPABILITIES
        if not callable(getattr(entity, capability, None))
    ]
    if missing:
        raise DescriptorContractError(
            f"Descriptor '{name}' is missing required capabilities: {', '.join(missing)}."
        )


def generate(metadata: Iterable[EntityDescriptor]) -> str:
    """Return the yUML text for ``metadata`` using a fresh grapher."""
    return YUMLMetadataGrapher().generate_from_metadata(metadata)
