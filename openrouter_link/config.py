"""
OpenRouter link configuration. No secrets here; OpenRouter issues the key at runtime.
"""
import os

# OpenRouter endpoints: browser authorization page and code -> key exchange
OPENROUTER_AUTH_URL = os.environ.get("OPENROUTER_AUTH_URL", "https://openrouter.ai/auth")
OPENROUTER_EXCHANGE_URL = os.environ.get("OPENROUTER_EXCHANGE_URL", "https://openrouter.ai/api/v1/auth/keys")

# Public base URL of this service; OpenRouter redirects the system browser here
PUBLIC_BASE_URL = os.environ.get("PUBLIC_BASE_URL", "http://127.0.0.1:8000").rstrip("/")

# Where unauthenticated /auth/openrouter requests are sent
LOGIN_URL = os.environ.get("LOGIN_URL", "/login")

# Pending PKCE flow lifetime and sweep period (seconds)
FLOW_TTL_SECONDS = float(os.environ.get("FLOW_TTL_SECONDS", "300"))
FLOW_SWEEP_INTERVAL_SECONDS = float(os.environ.get("FLOW_SWEEP_INTERVAL_SECONDS", "60"))

EXCHANGE_TIMEOUT_SECONDS = float(os.environ.get("EXCHANGE_TIMEOUT_SECONDS", "10"))
