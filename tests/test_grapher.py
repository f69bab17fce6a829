from __future__ import annotations

from typing import List, Optional

import pytest

from yuml_grapher import (
    Association,
    AssociationMapping,
    DescriptorContractError,
    Entity,
    Field,
    YUMLMetadataGrapher,
    generate,
)
from yuml_grapher.grapher import VisitLedger, multiplicity


def identifier(name: str = "id") -> Field:
    return Field(name=name, identifier=True)


def bidirectional_pair() -> List[Entity]:
    owner = Entity(
        name="A",
        associations=[Association("items", "B", collection=True, inversed_by="owner")],
    )
    item = Entity(
        name="B",
        associations=[Association("owner", "A", owning=False, mapped_by="items")],
    )
    return [owner, item]


def test_unidirectional_to_one_association() -> None:
    a = Entity(
        name="A",
        fields=[identifier(), Field("name")],
        associations=[Association("b", "B")],
    )
    b = Entity(name="B", fields=[identifier()])

    assert generate([a, b]) == "[A|+id;name]-b 1>[B|+id]"


def test_bidirectional_association_is_drawn_once_from_owning_side() -> None:
    assert generate(bidirectional_pair()) == "[A]<>owner 1-items *>[B]"


def test_bidirectional_association_is_drawn_once_from_inverse_side() -> None:
    owner, item = bidirectional_pair()
    assert generate([item, owner]) == "[B]<items *-owner 1<>[A]"


def test_reverse_name_on_owning_target_is_labelled_without_arrow() -> None:
    a = Entity(name="A", associations=[Association("b", "B", inversed_by="a")])
    b = Entity(name="B", associations=[Association("a", "A")])

    assert generate([a, b]) == "[A]a -b 1>[B]"


def test_unknown_reverse_association_is_drawn_unidirectional() -> None:
    a = Entity(name="A", associations=[Association("b", "B", inversed_by="missing")])
    b = Entity(name="B")

    assert generate([a, b]) == "[A]-b 1>[B]"


def test_inheritance_edge_child_first() -> None:
    parent = Entity(name="Super", fields=[identifier()])
    child = Entity(name="Sub", fields=[Field("extra")], parent="Super")

    assert generate([child, parent]) == "[Super|+id]^[Sub|extra]"


def test_inheritance_edge_parent_first_keeps_parent_node() -> None:
    parent = Entity(name="Super", fields=[identifier()])
    child = Entity(name="Sub", fields=[Field("extra")], parent="Super")

    assert generate([parent, child]) == "[Super|+id],[Super|+id]^[Sub|extra]"


def test_inherited_fields_are_omitted_from_child() -> None:
    parent = Entity(name="Super", fields=[identifier(), Field("created")])
    child = Entity(
        name="Sub",
        fields=[identifier(), Field("created"), Field("extra")],
        parent="Super",
    )

    assert generate([child, parent]) == "[Super|+id;created]^[Sub|extra]"


def test_unmapped_parent_is_ignored() -> None:
    child = Entity(name="Sub", fields=[identifier()], parent="Missing")

    assert generate([child]) == "[Sub|+id]"


def test_inherited_associations_are_drawn_at_the_ancestor() -> None:
    parent = Entity(name="Super", associations=[Association("owner", "Owner")])
    child = Entity(
        name="Sub",
        parent="Super",
        associations=[Association("owner", "Owner"), Association("extra", "Other")],
    )
    owner = Entity(name="Owner")
    other = Entity(name="Other")

    assert generate([parent, child, owner, other]) == (
        "[Super]-owner 1>[Owner],[Super]^[Sub],[Sub]-extra 1>[Other]"
    )


def test_association_is_only_skipped_when_parent_is_mapped() -> None:
    parent = Entity(name="Super", associations=[Association("owner", "Owner")])
    child = Entity(name="Sub", associations=[Association("owner", "Owner")])
    owner = Entity(name="Owner")
    # Sub is not linked to Super here, so its association is its own.
    assert generate([parent, child, owner]) == "[Super]-owner 1>[Owner],[Sub]-owner 1>[Owner]"

    child.parent = "Super"
    assert generate([child, parent, owner]) == "[Super]^[Sub],[Super]-owner 1>[Owner]"


def test_isolated_class() -> None:
    assert generate([Entity(name="Isolated")]) == "[Isolated]"


def test_association_target_is_not_repeated_as_bare_node() -> None:
    a = Entity(name="A", associations=[Association("b", "B")])
    b = Entity(name="B")

    fragments = generate([a, b]).split(",")
    assert fragments == ["[A]-b 1>[B]"]


def test_unmapped_target_owning_side() -> None:
    a = Entity(
        name="A",
        associations=[Association("tags", "Vendor\\Tag", collection=True)],
    )

    assert generate([a]) == "[A]<>-tags *>[Vendor.Tag]"


def test_unmapped_target_inverse_side() -> None:
    a = Entity(
        name="A",
        associations=[Association("owner", "Vendor\\Owner", owning=False, mapped_by="items")],
    )

    assert generate([a]) == "[A]<-owner 1<>[Vendor.Owner]"


def test_namespaces_are_rendered_with_dots() -> None:
    user = Entity(name="App\\Model\\User", fields=[identifier()])

    assert generate([user]) == "[App.Model.User|+id]"


def test_identifier_fields_are_prefixed() -> None:
    entity = Entity(
        name="Pair",
        fields=[Field("left", identifier=True), Field("label"), Field("right", identifier=True)],
    )

    assert generate([entity]) == "[Pair|+left;label;+right]"


def test_generation_is_deterministic_and_resets_state() -> None:
    grapher = YUMLMetadataGrapher()
    first = grapher.generate_from_metadata(bidirectional_pair())

    assert grapher.generate_from_metadata([Entity(name="Isolated")]) == "[Isolated]"
    assert grapher.generate_from_metadata(bidirectional_pair()) == first
    assert generate(bidirectional_pair()) == first


def test_empty_input() -> None:
    assert generate([]) == ""


def test_duplicate_names_are_rejected() -> None:
    with pytest.raises(DescriptorContractError, match="Duplicate entity name 'A'"):
        generate([Entity(name="A"), Entity(name="A")])


def test_descriptor_without_capabilities_is_rejected() -> None:
    class Incomplete:
        name = "Incomplete"

        def field_names(self) -> List[str]:
            return []

    with pytest.raises(DescriptorContractError) as exc_info:
        generate([Incomplete()])
    message = str(exc_info.value)
    assert "Incomplete" in message
    assert "association_names" in message
    assert "field_names" not in message


def test_descriptor_without_name_is_rejected() -> None:
    with pytest.raises(DescriptorContractError, match="no usable 'name'"):
        generate([object()])


def test_any_object_with_the_capabilities_is_accepted() -> None:
    class Row:
        def __init__(self, name: str, parent: Optional[str] = None) -> None:
            self.name = name
            self._parent = parent

        def field_names(self) -> List[str]:
            return ["id"]

        def is_identifier(self, field_name: str) -> bool:
            return field_name == "id"

        def association_names(self) -> List[str]:
            return []

        def association_target_name(self, association: str) -> str:
            raise KeyError(association)

        def is_association_inverse_side(self, association: str) -> bool:
            raise KeyError(association)

        def is_collection_valued_association(self, association: str) -> bool:
            raise KeyError(association)

        def association_mapping(self, association: str) -> AssociationMapping:
            raise KeyError(association)

        def parent_name(self) -> Optional[str]:
            return self._parent

    assert generate([Row("Base"), Row("Leaf", parent="Base")]) == "[Base|+id],[Base|+id]^[Leaf]"


def test_visit_ledger() -> None:
    ledger = VisitLedger()

    assert "A" not in ledger
    assert ledger.visit("A", "b") is True
    assert ledger.visit("A", "b") is False
    assert "A" in ledger
    assert ledger.visit("A") is False
    assert ledger.visit("B") is True
    assert ledger.visit("B") is False
    assert ledger.visit("B", "c") is True


@pytest.mark.parametrize(
    ("collection", "expected"),
    [(True, "*"), (False, "1"), (None, "")],
)
def test_multiplicity(collection: Optional[bool], expected: str) -> None:
    assert multiplicity(collection) == expected
