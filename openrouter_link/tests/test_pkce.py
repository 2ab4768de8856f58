"""Tests for PKCE, auth URL building and return path sanitising."""
import base64
import hashlib
import re
from urllib.parse import parse_qs, urlsplit

import pytest

from openrouter_link.pkce import build_auth_url, callback_url_with_state, generate_pkce, validate_return_path


def test_generate_pkce_returns_verifier_and_challenge():
    verifier, challenge = generate_pkce()
    assert len(verifier) == 43
    assert re.match(r"^[A-Za-z0-9_-]+$", verifier)
    assert re.match(r"^[A-Za-z0-9_-]+$", challenge)
    assert len(challenge) == 43  # base64url(SHA256 digest) no padding


def test_challenge_is_s256_of_verifier():
    verifier, challenge = generate_pkce()
    expected = base64.urlsafe_b64encode(hashlib.sha256(verifier.encode()).digest()).rstrip(b"=").decode()
    assert challenge == expected


def test_generate_pkce_is_random():
    assert generate_pkce()[0] != generate_pkce()[0]


def test_build_auth_url_includes_required_params():
    url = build_auth_url("http://127.0.0.1:8000/cb?state=abc", "challenge123", auth_url="https://or.example/auth")
    assert url.startswith("https://or.example/auth?")
    params = parse_qs(urlsplit(url).query)
    assert params["callback_url"] == ["http://127.0.0.1:8000/cb?state=abc"]
    assert params["code_challenge"] == ["challenge123"]
    assert params["code_challenge_method"] == ["S256"]


def test_build_auth_url_defaults_to_openrouter():
    assert build_auth_url("http://x/cb", "c").startswith("https://openrouter.ai/auth?")


def test_callback_url_with_state():
    url = callback_url_with_state("http://127.0.0.1:8000/auth/openrouter/callback", "tok-_123")
    assert url == "http://127.0.0.1:8000/auth/openrouter/callback?state=tok-_123"


def test_callback_url_with_state_keeps_existing_query():
    url = callback_url_with_state("http://h/cb?mode=desktop", "s")
    assert parse_qs(urlsplit(url).query) == {"mode": ["desktop"], "state": ["s"]}


@pytest.mark.parametrize("path", ["/", "/setup", "/admin/setup?tab=llm"])
def test_validate_return_path_keeps_local_paths(path):
    assert validate_return_path(path) == path


@pytest.mark.parametrize(
    "path",
    [None, "", "setup", "https://evil.com", "//evil.com/x", "/\\evil.com", "javascript:alert(1)"],
)
def test_validate_return_path_rejects_everything_else(path):
    assert validate_return_path(path) == "/"
