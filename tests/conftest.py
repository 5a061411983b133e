"""Shared fixtures for the json-seal test suite."""

import pytest

from json_seal.core.crypto import KeyPair


@pytest.fixture(scope="session")
def key_pair() -> KeyPair:
    return KeyPair.generate()


@pytest.fixture(scope="session")
def other_key_pair() -> KeyPair:
    return KeyPair.generate()


@pytest.fixture
def payload() -> dict:
    return {
        "id": 1,
        "data": "test",
        "nested": {"score": 42, "tags": ["a", "b", "c"]},
    }
