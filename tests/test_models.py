"""Tests for core data models."""

from __future__ import annotations

from refdocs.models import CATEGORIES, DEFAULT_CATEGORY, ClassReference, DocRecord


class TestDocRecord:
    """Test DocRecord dataclass."""

    def test_defaults(self) -> None:
        record = DocRecord(
            id="abc",
            title="AActor",
            category="actor",
            source="ue5.7",
            content="# AActor",
        )

        assert record.entities == []
        assert record.url == ""
        assert record.path == ""

    def test_entities_are_not_shared(self) -> None:
        first = DocRecord(id="a", title="A", category="general", source="s", content="x")
        second = DocRecord(id="b", title="B", category="general", source="s", content="y")

        first.entities.append("UObject")

        assert second.entities == []

    def test_equality(self) -> None:
        """Should compare records by value."""
        kwargs = dict(id="a", title="A", category="actor", source="s", content="x")

        assert DocRecord(**kwargs) == DocRecord(**kwargs)


class TestClassReference:
    """Test ClassReference payload rendering."""

    def test_minimal_payload(self) -> None:
        assert ClassReference(name="UObject").as_dict() == {"name": "UObject", "description": ""}

    def test_full_payload(self) -> None:
        info = ClassReference(
            name="AActor",
            parent="UObject",
            module="Engine",
            description="Base actor.",
            properties=["`RootComponent`"],
            functions=["`BeginPlay()`"],
            source="ue5.7",
            url="https://example.com/aactor",
        )

        assert info.as_dict() == {
            "name": "AActor",
            "parent": "UObject",
            "module": "Engine",
            "description": "Base actor.",
            "properties": ["`RootComponent`"],
            "functions": ["`BeginPlay()`"],
            "source": "ue5.7",
            "url": "https://example.com/aactor",
        }

    def test_payload_lists_are_copies(self) -> None:
        info = ClassReference(name="AActor", properties=["`Tags`"])

        info.as_dict()["properties"].append("`Owner`")

        assert info.properties == ["`Tags`"]


def test_category_vocabulary() -> None:
    assert DEFAULT_CATEGORY not in CATEGORIES
    assert "realtimemesh" in CATEGORIES
    assert len(set(CATEGORIES)) == len(CATEGORIES)
