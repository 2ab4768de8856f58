"""
OpenRouter authorization code exchange: code + code_verifier -> user-controlled API key.
"""
import logging

import httpx

from openrouter_link.config import EXCHANGE_TIMEOUT_SECONDS, OPENROUTER_EXCHANGE_URL

logger = logging.getLogger(__name__)


class ExchangeError(Exception):
    """OpenRouter did not return a key for the authorization code."""


def exchange_code(code: str, code_verifier: str, *, exchange_url: str = OPENROUTER_EXCHANGE_URL) -> str:
    """
    POST the code and verifier to OpenRouter. Returns the API key.
    Raises ExchangeError on non-200, transport failure, or a response without a key.
    """
    try:
        r = httpx.post(
            exchange_url,
            json={
                "code": code,
                "code_verifier": code_verifier,
                "code_challenge_method": "S256",
            },
            headers={"Accept": "application/json"},
            timeout=EXCHANGE_TIMEOUT_SECONDS,
        )
    except httpx.HTTPError as e:
        logger.warning("OpenRouter exchange request failed: %s", e)
        raise ExchangeError(f"OpenRouter request failed: {e}") from e

    if r.status_code != 200:
        logger.warning("OpenRouter exchange returned status %s", r.status_code)
        raise ExchangeError(f"OpenRouter returned status {r.status_code}")

    try:
        data = r.json()
    except ValueError as e:
        raise ExchangeError("OpenRouter returned an invalid response") from e
    key = data.get("key") if isinstance(data, dict) else None
    if not key:
        raise ExchangeError("OpenRouter response did not include a key")
    return key
