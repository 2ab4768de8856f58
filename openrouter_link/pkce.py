"""
PKCE (RFC 7636) and OpenRouter auth URL helpers for the link flow.
S256 only.
"""
import hashlib
import secrets
from base64 import urlsafe_b64encode
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from openrouter_link.config import OPENROUTER_AUTH_URL


def generate_pkce() -> tuple[str, str]:
    """
    Generate code_verifier and code_challenge (S256).
    Returns (code_verifier, code_challenge). Verifier is 43 chars (256 bits entropy).
    """
    code_verifier = secrets.token_urlsafe(32)
    digest = hashlib.sha256(code_verifier.encode("ascii")).digest()
    code_challenge = urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")
    return code_verifier, code_challenge


def callback_url_with_state(callback_url: str, state: str) -> str:
    """Add state to the callback URL's query; OpenRouter returns to this URL as given."""
    parts = urlsplit(callback_url)
    query = parse_qsl(parts.query, keep_blank_values=True)
    query.append(("state", state))
    return urlunsplit(parts._replace(query=urlencode(query)))


def build_auth_url(callback_url: str, code_challenge: str, *, auth_url: str = OPENROUTER_AUTH_URL) -> str:
    """Build OpenRouter /auth URL for the browser."""
    params = {
        "callback_url": callback_url,
        "code_challenge": code_challenge,
        "code_challenge_method": "S256",
    }
    return f"{auth_url}?{urlencode(params)}"


def validate_return_path(path: str | None) -> str:
    """Local absolute paths only ("/setup"); anything else (URLs, "//host") becomes "/"."""
    if not path or not path.startswith("/") or path.startswith("//") or "\\" in path:
        return "/"
    return path
