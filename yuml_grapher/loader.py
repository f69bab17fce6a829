"""YAML loader that builds entity descriptors."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Union

import yaml
from jsonschema import Draft202012Validator

from .errors import MetadataLoadError
from .model import Association, Entity, Field

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).resolve().parent / "schema" / "metadata.schema.yaml"


def load_yaml(path: Path) -> dict:
    try:
        with path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle)
    except OSError as exc:
        raise MetadataLoadError(f"Cannot read {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise MetadataLoadError(f"Failed to parse YAML: {exc}") from exc

    if data is None:
        raise MetadataLoadError("Empty YAML file provided.")
    if not isinstance(data, dict):
        raise MetadataLoadError("Top level YAML structure must be a mapping/object.")
    return data


def validate_against_schema(document: dict) -> None:
    schema = yaml.safe_load(SCHEMA_PATH.read_text(encoding="utf-8"))
    validator = Draft202012Validator(schema)
    errors = sorted(validator.iter_errors(document), key=lambda e: list(e.absolute_path))
    if not errors:
        return

    details = []
    for error in errors:
        path = "$" + "".join(f"/{segment}" for segment in error.absolute_path)
        details.append(f"- {path}: {error.message}")
    raise MetadataLoadError("Schema validation failed:\n" + "\n".join(details))


class MetadataLoader:
    """Load a YAML metadata document into :class:`Entity` objects."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def load(self) -> List[Entity]:
        document = load_yaml(self.path)
        validate_against_schema(document)

        entities: List[Entity] = []
        seen = set()
        for item in document.get("entities") or []:
            entity = self._parse_entity(item)
            if entity.name in seen:
                raise MetadataLoadError(f"Entity '{entity.name}' is declared more than once.")
            seen.add(entity.name)
            entities.append(entity)

        logger.info("Loaded %d entities from %s", len(entities), self.path)
        return entities

    def _parse_entity(self, item: Dict[str, Any]) -> Entity:
        return Entity(
            name=item["name"],
            fields=[self._parse_field(value) for value in item.get("fields") or []],
            associations=[self._parse_association(value) for value in item.get("associations") or []],
            parent=item.get("parent"),
        )

    def _parse_field(self, item: Union[str, Dict[str, Any]]) -> Field:
        if isinstance(item, str):
            return Field(name=item)
        return Field(name=item["name"], identifier=item.get("identifier", False))

    def _parse_association(self, item: Dict[str, Any]) -> Association:
        return Association(
            name=item["name"],
            target=item["target"],
            collection=item.get("collection", False),
            owning=item.get("owning", True),
            inversed_by=item.get("inversed_by"),
            mapped_by=item.get("mapped_by"),
        )
