"""Read entity descriptors out of an OWL ontology.

Classes become entities, datatype properties become fields and object
properties become associations. Keys declared with ``owl:hasKey`` mark
identifier fields, ``owl:FunctionalProperty`` marks to-one associations and
``owl:inverseOf`` links the two ends of a bidirectional association: the
property stating ``owl:inverseOf`` is the inverse side.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Set

from rdflib import Graph, RDF, RDFS, URIRef
from rdflib.collection import Collection
from rdflib.namespace import OWL
from rdflib.util import guess_format

from .errors import MetadataLoadError
from .model import Association, Entity, Field

logger = logging.getLogger(__name__)

DEFAULT_FORMAT = "turtle"


def local_name(iri: URIRef) -> str:
    value = str(iri).rstrip("/#")
    return value.rsplit("#", 1)[-1].rsplit("/", 1)[-1]


def property_sort_key(prop: object) -> tuple:
    return (local_name(prop), str(prop))


def first_iri(nodes: Iterable[object], allowed: Optional[Set[URIRef]] = None) -> Optional[URIRef]:
    candidates = sorted(
        node for node in nodes
        if isinstance(node, URIRef) and (allowed is None or node in allowed)
    )
    return candidates[0] if candidates else None


class OwlMetadataLoader:
    """Load an RDF serialized ontology into :class:`Entity` objects."""

    def __init__(self, path: Path, fmt: Optional[str] = None) -> None:
        self.path = path
        self.fmt = fmt

    def load(self) -> List[Entity]:
        graph = self._read_graph()
        classes = {node for node in graph.subjects(RDF.type, OWL.Class) if isinstance(node, URIRef)}

        entities: Dict[URIRef, Entity] = {}
        for cls in sorted(classes):
            parent = first_iri(graph.objects(cls, RDFS.subClassOf), classes)
            entities[cls] = Entity(
                name=local_name(cls),
                parent=local_name(parent) if parent is not None else None,
            )

        self._add_fields(graph, entities)
        self._add_associations(graph, entities)

        result = list(entities.values())
        names = [entity.name for entity in result]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise MetadataLoadError(
                f"Classes share the same local name: {', '.join(duplicates)}."
            )
        logger.info("Loaded %d entities from %s", len(result), self.path)
        return result

    def _read_graph(self) -> Graph:
        fmt = self.fmt or guess_format(str(self.path)) or DEFAULT_FORMAT
        graph = Graph()
        try:
            graph.parse(source=str(self.path), format=fmt)
        except Exception as exc:
            raise MetadataLoadError(f"Failed to parse ontology {self.path}: {exc}") from exc
        return graph

    def _add_fields(self, graph: Graph, entities: Dict[URIRef, Entity]) -> None:
        keys: Dict[URIRef, Set[URIRef]] = {}
        for cls in entities:
            keys[cls] = set()
            for key_list in graph.objects(cls, OWL.hasKey):
                keys[cls].update(Collection(graph, key_list))

        for prop in sorted(graph.subjects(RDF.type, OWL.DatatypeProperty), key=property_sort_key):
            domain = first_iri(graph.objects(prop, RDFS.domain), set(entities))
            if domain is None:
                logger.debug("Ignoring datatype property %s without a mapped domain", prop)
                continue
            entities[domain].fields.append(Field(name=local_name(prop), identifier=prop in keys[domain]))

    def _add_associations(self, graph: Graph, entities: Dict[URIRef, Entity]) -> None:
        for prop in sorted(graph.subjects(RDF.type, OWL.ObjectProperty), key=property_sort_key):
            domain = first_iri(graph.objects(prop, RDFS.domain), set(entities))
            target = first_iri(graph.objects(prop, RDFS.range))
            if domain is None or target is None:
                logger.debug("Ignoring object property %s without domain or range", prop)
                continue

            association = Association(
                name=local_name(prop),
                target=local_name(target),
                collection=(prop, RDF.type, OWL.FunctionalProperty) not in graph,
            )
            declared = first_iri(graph.objects(prop, OWL.inverseOf))
            referring = first_iri(graph.subjects(OWL.inverseOf, prop))
            if declared is not None and (referring != declared or str(prop) > str(declared)):
                association.owning = False
                association.mapped_by = local_name(declared)
            elif referring is not None:
                association.inversed_by = local_name(referring)

            entities[domain].associations.append(association)
