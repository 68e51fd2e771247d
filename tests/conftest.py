"""Shared test fixtures."""

import json
from pathlib import Path

import pytest
from titletypes.config import (
    Config,
    PreviewsConfig,
    RoutingConfig,
    ServerConfig,
    TaxonomyConfig,
    default_pages,
)
from titletypes.core.taxonomy import Taxonomy

from tests.fakes import ENDPOINT, SAMPLE_DOCUMENT


@pytest.fixture
def taxonomy() -> Taxonomy:
    """Taxonomy built from the sample document."""
    return Taxonomy.from_document(SAMPLE_DOCUMENT)


@pytest.fixture
def test_config(tmp_path: Path) -> Config:
    """Create a test configuration serving the sample document.

    Writes the sample document to tmp_path and uses the default pages and
    host routes.
    """
    source = tmp_path / "database.json"
    source.write_text(json.dumps(SAMPLE_DOCUMENT))

    return Config(
        server=ServerConfig(),
        taxonomy=TaxonomyConfig(source=source),
        previews=PreviewsConfig(endpoint=ENDPOINT),
        routing=RoutingConfig(),
        pages=default_pages(),
    )
