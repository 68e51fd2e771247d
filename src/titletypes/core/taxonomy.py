"""Taxonomy store.

Read-only representation of the topic taxonomy document. The source document
is a JSON object whose keys are numeric strings (used only as a sort key)
mapping to topic records:

    {
        "1": {
            "type": "Question titles",
            "subtypes": [
                {"type": "*Why* questions", "examples": ["https://..."]}
            ]
        }
    }

Missing ``subtypes`` or ``examples`` are treated as empty collections. Any
other malformation raises TaxonomyError when the document is loaded.
"""

from __future__ import annotations

import json
import math
import re
from dataclasses import dataclass
from importlib.resources import files
from pathlib import Path
from typing import Any, TypedDict

BUNDLED_DOCUMENT = "database.json"

# Plain decimal notation: no underscores, hex or named values
_NUMERIC_KEY_RE = re.compile(r"^\s*[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?\s*$")


class TaxonomyError(ValueError):
    """Raised when a taxonomy document cannot be turned into a Taxonomy."""


class SubtypeDict(TypedDict):
    """Dictionary representation of a subtype."""

    label: str
    examples: list[str]


class TopicDict(TypedDict):
    """Dictionary representation of a topic."""

    label: str
    subtypes: list[SubtypeDict]


@dataclass(frozen=True)
class Subtype:
    """A subtype of a topic with its example URLs."""

    label: str
    examples: tuple[str, ...] = ()

    def to_dict(self) -> SubtypeDict:
        """Convert to dictionary for JSON serialization."""
        return {"label": self.label, "examples": list(self.examples)}


@dataclass(frozen=True)
class Topic:
    """A top-level topic."""

    label: str
    subtypes: tuple[Subtype, ...] = ()

    def to_dict(self) -> TopicDict:
        """Convert to dictionary for JSON serialization."""
        return {
            "label": self.label,
            "subtypes": [subtype.to_dict() for subtype in self.subtypes],
        }


@dataclass(frozen=True)
class Taxonomy:
    """Display-ordered, immutable topic taxonomy."""

    topics: tuple[Topic, ...]

    def __len__(self) -> int:
        return len(self.topics)

    @property
    def subtype_count(self) -> int:
        return sum(len(topic.subtypes) for topic in self.topics)

    @property
    def example_count(self) -> int:
        return sum(
            len(subtype.examples) for topic in self.topics for subtype in topic.subtypes
        )

    def to_dict(self) -> dict[str, list[TopicDict]]:
        """Convert to dictionary for JSON serialization."""
        return {"topics": [topic.to_dict() for topic in self.topics]}

    @classmethod
    def from_document(cls, document: object) -> Taxonomy:
        """Build a taxonomy from a parsed JSON document.

        Topics are ordered by the numeric value of their keys. Subtypes and
        examples keep their source order.

        Args:
            document: Parsed JSON document

        Returns:
            Taxonomy instance

        Raises:
            TaxonomyError: If the document is malformed
        """
        if not isinstance(document, dict):
            raise TaxonomyError("Taxonomy document must be an object")

        keyed: list[tuple[float, Topic]] = []
        for key, record in document.items():
            keyed.append((_parse_key(key), _parse_topic(key, record)))

        keyed.sort(key=lambda item: item[0])
        return cls(topics=tuple(topic for _, topic in keyed))


def load_taxonomy(path: Path) -> Taxonomy:
    """Load a taxonomy from a JSON file.

    Args:
        path: Path to the JSON document

    Returns:
        Taxonomy instance

    Raises:
        FileNotFoundError: If the file does not exist
        TaxonomyError: If the file is not valid JSON or is malformed
    """
    text = path.read_text(encoding="utf-8")
    try:
        document = json.loads(text)
    except json.JSONDecodeError as e:
        raise TaxonomyError(f"Invalid JSON in {path}: {e}") from e
    return Taxonomy.from_document(document)


def load_bundled_taxonomy() -> Taxonomy:
    """Load the taxonomy document shipped inside the package."""
    resource = files("titletypes").joinpath("data", BUNDLED_DOCUMENT)
    return Taxonomy.from_document(json.loads(resource.read_text(encoding="utf-8")))


def _parse_key(key: str) -> float:
    if not _NUMERIC_KEY_RE.match(key):
        raise TaxonomyError(f"Topic key must be numeric, got {key!r}")
    value = float(key)
    if not math.isfinite(value):
        raise TaxonomyError(f"Topic key must be finite, got {key!r}")
    return value


def _parse_topic(key: str, record: Any) -> Topic:
    if not isinstance(record, dict):
        raise TaxonomyError(f"topic {key} must be an object")

    label = record.get("type")
    if not isinstance(label, str):
        raise TaxonomyError(f"topic {key}.type must be a string")

    raw_subtypes = record.get("subtypes")
    if raw_subtypes is None:
        return Topic(label=label)
    if not isinstance(raw_subtypes, list):
        raise TaxonomyError(f"topic {key}.subtypes must be a list")

    subtypes = tuple(
        _parse_subtype(f"{key}.subtypes[{i}]", item) for i, item in enumerate(raw_subtypes)
    )
    return Topic(label=label, subtypes=subtypes)


def _parse_subtype(where: str, record: Any) -> Subtype:
    if not isinstance(record, dict):
        raise TaxonomyError(f"topic {where} must be an object")

    label = record.get("type")
    if not isinstance(label, str):
        raise TaxonomyError(f"topic {where}.type must be a string")

    raw_examples = record.get("examples")
    if raw_examples is None:
        return Subtype(label=label)
    if not isinstance(raw_examples, list):
        raise TaxonomyError(f"topic {where}.examples must be a list")

    for example in raw_examples:
        if not isinstance(example, str):
            raise TaxonomyError(f"topic {where}.examples items must be strings")

    return Subtype(label=label, examples=tuple(raw_examples))
