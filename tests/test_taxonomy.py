"""Tests for the taxonomy store."""

import json
from pathlib import Path

import pytest
from titletypes.core.taxonomy import (
    Subtype,
    Taxonomy,
    TaxonomyError,
    Topic,
    load_bundled_taxonomy,
    load_taxonomy,
)

from tests.fakes import SAMPLE_DOCUMENT


class TestFromDocument:
    """Tests for Taxonomy.from_document()."""

    def test__numeric_keys__sorted_ascending(self) -> None:
        """Order topics by the numeric value of their keys, not lexically."""
        taxonomy = Taxonomy.from_document(SAMPLE_DOCUMENT)

        assert [topic.label for topic in taxonomy.topics] == [
            "First",
            "Second",
            "Tenth *topic*",
        ]

    def test__decimal_keys__sorted_by_value(self) -> None:
        """Fractional, signed and exponent keys sort by numeric value."""
        taxonomy = Taxonomy.from_document(
            {
                "2": {"type": "Two"},
                "1.5": {"type": "One and a half"},
                "1": {"type": "One"},
                "-3": {"type": "Minus three"},
                "1e1": {"type": "Ten"},
            },
        )

        assert [topic.label for topic in taxonomy.topics] == [
            "Minus three",
            "One",
            "One and a half",
            "Two",
            "Ten",
        ]

    def test__subtypes_and_examples__keep_source_order(self) -> None:
        """Keep subtype and example order as declared."""
        taxonomy = Taxonomy.from_document(SAMPLE_DOCUMENT)

        first = taxonomy.topics[0]
        assert [s.label for s in first.subtypes] == ["*Why* questions", "Empty"]
        assert first.subtypes[0].examples == (
            "https://www.youtube.com/watch?v=aaa",
            "https://www.youtube.com/watch?v=bbb",
        )

    def test__missing_collections__treated_as_empty(self) -> None:
        """Treat absent or null subtypes/examples as empty."""
        taxonomy = Taxonomy.from_document(
            {
                "1": {"type": "No subtypes key"},
                "2": {"type": "Null subtypes", "subtypes": None},
                "3": {"type": "T", "subtypes": [{"type": "No examples key"}]},
            },
        )

        assert taxonomy.topics[0] == Topic(label="No subtypes key")
        assert taxonomy.topics[1].subtypes == ()
        assert taxonomy.topics[2].subtypes == (Subtype(label="No examples key"),)

    def test__empty_document__returns_no_topics(self) -> None:
        """An empty object is a valid, empty taxonomy."""
        assert len(Taxonomy.from_document({})) == 0

    @pytest.mark.parametrize(
        ("document", "message"),
        [
            ([], "must be an object"),
            ({"one": {"type": "T"}}, "must be numeric"),
            ({"1_0": {"type": "T"}}, "must be numeric"),
            ({"0x10": {"type": "T"}}, "must be numeric"),
            ({"": {"type": "T"}}, "must be numeric"),
            ({"1e999": {"type": "T"}}, "must be finite"),
            ({"1": "T"}, "topic 1 must be an object"),
            ({"1": {"subtypes": []}}, "topic 1.type must be a string"),
            ({"1": {"type": "T", "subtypes": {}}}, "subtypes must be a list"),
            ({"1": {"type": "T", "subtypes": [{"examples": []}]}}, "type must be a string"),
            (
                {"1": {"type": "T", "subtypes": [{"type": "S", "examples": "x"}]}},
                "examples must be a list",
            ),
            (
                {"1": {"type": "T", "subtypes": [{"type": "S", "examples": [1]}]}},
                "items must be strings",
            ),
        ],
    )
    def test__malformed_document__raises_taxonomy_error(
        self,
        document: object,
        message: str,
    ) -> None:
        """Reject malformed documents with a descriptive error."""
        with pytest.raises(TaxonomyError, match=message):
            Taxonomy.from_document(document)

    def test__taxonomy__is_immutable(self) -> None:
        """Loaded topics cannot be modified."""
        taxonomy = Taxonomy.from_document(SAMPLE_DOCUMENT)

        with pytest.raises(AttributeError):
            taxonomy.topics[0].label = "Changed"  # type: ignore[misc]


class TestCounts:
    """Tests for Taxonomy counters and serialization."""

    def test__counts__cover_whole_tree(self) -> None:
        taxonomy = Taxonomy.from_document(SAMPLE_DOCUMENT)

        assert len(taxonomy) == 3
        assert taxonomy.subtype_count == 4
        assert taxonomy.example_count == 3

    def test__to_dict__uses_display_order(self) -> None:
        taxonomy = Taxonomy.from_document(SAMPLE_DOCUMENT)

        data = taxonomy.to_dict()

        assert data["topics"][0]["label"] == "First"
        assert data["topics"][1]["subtypes"][0] == {
            "label": "Missing examples",
            "examples": [],
        }
        assert data["topics"][2]["subtypes"] == []


class TestLoadTaxonomy:
    """Tests for load_taxonomy() and load_bundled_taxonomy()."""

    def test__json_file__loads_taxonomy(self, tmp_path: Path) -> None:
        source = tmp_path / "database.json"
        source.write_text(json.dumps(SAMPLE_DOCUMENT))

        taxonomy = load_taxonomy(source)

        assert len(taxonomy) == 3

    def test__invalid_json__raises_taxonomy_error(self, tmp_path: Path) -> None:
        source = tmp_path / "database.json"
        source.write_text("{not json")

        with pytest.raises(TaxonomyError, match="Invalid JSON"):
            load_taxonomy(source)

    def test__missing_file__raises_file_not_found_error(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_taxonomy(tmp_path / "missing.json")

    def test__bundled_document__is_valid(self) -> None:
        """The document shipped with the package loads cleanly."""
        taxonomy = load_bundled_taxonomy()

        assert len(taxonomy) > 0
        assert taxonomy.example_count > 0
