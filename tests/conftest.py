"""Shared fixtures for the catalog engine tests."""

import json
import os
from unittest.mock import MagicMock

import pytest

FIXTURES_DIR = os.path.join(os.path.dirname(__file__), "fixtures")


def load_fixture(name):
    with open(os.path.join(FIXTURES_DIR, name)) as f:
        return json.load(f)


@pytest.fixture
def root_data():
    return load_fixture("root_products_response.json")["data"]


@pytest.fixture
def collection_data():
    return load_fixture("collection_products_response.json")["data"]


@pytest.fixture
def lookup_data():
    return load_fixture("collection_lookup_response.json")["data"]


@pytest.fixture
def mock_client():
    return MagicMock()
