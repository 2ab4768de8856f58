"""Tests for the linked key store."""
import pytest

from openrouter_link.key_store import clear_keys, get_key, upsert_key


@pytest.fixture(autouse=True)
def _clean():
    clear_keys()
    yield
    clear_keys()


def test_upsert_creates_then_updates():
    assert upsert_key("user-1", "sk-old") == "created"
    assert upsert_key("user-1", "sk-new") == "updated"
    assert get_key("user-1").api_key == "sk-new"


def test_keys_are_per_user():
    upsert_key("a", "sk-a")
    assert get_key("b") is None
    assert get_key("a").api_key == "sk-a"


def test_clear_keys():
    upsert_key("a", "sk-a")
    clear_keys()
    assert get_key("a") is None
