"""
OpenRouter link service.
Starts the OpenRouter PKCE flow for a user and completes it when the system browser returns.
GET /auth/openrouter, /auth/openrouter/callback, /auth/openrouter/status. Port 8000.
"""
import html
import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse

from openrouter_link.config import (
    FLOW_SWEEP_INTERVAL_SECONDS,
    FLOW_TTL_SECONDS,
    LOGIN_URL,
    PUBLIC_BASE_URL,
)
from openrouter_link.flow_store import PendingFlowStore
from openrouter_link.key_store import get_key, upsert_key
from openrouter_link.openrouter import ExchangeError, exchange_code
from openrouter_link.pkce import build_auth_url, callback_url_with_state, generate_pkce, validate_return_path

logger = logging.getLogger(__name__)

CALLBACK_PATH = "/auth/openrouter/callback"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Own the pending flow store for the app's lifetime; its sweeper stops on shutdown."""
    store = PendingFlowStore(ttl=FLOW_TTL_SECONDS, sweep_interval=FLOW_SWEEP_INTERVAL_SECONDS)
    store.start()
    app.state.flow_store = store
    try:
        yield
    finally:
        store.stop()


app = FastAPI(title="OpenRouter Link", version="0.1.0", lifespan=lifespan)


def get_flow_store(request: Request) -> PendingFlowStore:
    """Dependency: the store created in lifespan."""
    return request.app.state.flow_store


def _page(title: str, heading: str, message: str, *, status_code: int = 200, link: str | None = None) -> HTMLResponse:
    """Static page for the system browser tab. message is escaped here."""
    back = f'\n  <p><a href="{html.escape(link)}">Return to the app</a></p>' if link else ""
    return HTMLResponse(
        f"""<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>{html.escape(title)}</title></head>
<body>
  <h1>{html.escape(heading)}</h1>
  <p>{html.escape(message)}</p>{back}
</body>
</html>""",
        status_code=status_code,
    )


@app.get("/health")
def health(store: PendingFlowStore = Depends(get_flow_store)):
    """Health check endpoint."""
    return {"status": "ok", "service": "openrouter_link", "pending_flows": len(store)}


@app.get("/auth/openrouter")
def start_link(
    request: Request,
    user_id: str | None = None,
    return_to: str | None = None,
    store: PendingFlowStore = Depends(get_flow_store),
):
    """
    Generate PKCE verifier + challenge, store the flow under a fresh state token, and send the
    browser to OpenRouter. With Accept: application/json, return the URL instead (desktop shells
    open it in the system browser).
    """
    if not user_id:
        return RedirectResponse(url=LOGIN_URL, status_code=302)

    code_verifier, code_challenge = generate_pkce()
    state = store.store(code_verifier, user_id, validate_return_path(return_to))
    callback_url = callback_url_with_state(f"{PUBLIC_BASE_URL}{CALLBACK_PATH}", state)
    url = build_auth_url(callback_url, code_challenge)
    logger.info("Started OpenRouter link for user_id=%s", user_id)

    if "application/json" in request.headers.get("accept", ""):
        return JSONResponse({"auth_url": url, "state": state})
    return RedirectResponse(url=url, status_code=302)


@app.get(CALLBACK_PATH, response_class=HTMLResponse)
def callback(
    code: str | None = None,
    state: str | None = None,
    store: PendingFlowStore = Depends(get_flow_store),
):
    """
    Handle redirect from OpenRouter. Consumes the state (single use), exchanges the code for a key,
    and links it to the user who started the flow.
    """
    if not code:
        if state:
            # Burn the flow so the state can't be replayed
            store.fetch_and_delete(state)
        return _page(
            "OpenRouter",
            "OpenRouter authorization failed",
            "OpenRouter authorization was cancelled or failed. You can close this tab and try again.",
            status_code=400,
        )

    if not state:
        return _page("Error", "Error", "Missing state parameter.", status_code=400)

    flow = store.fetch_and_delete(state)
    if flow is None:
        logger.warning("Rejected OpenRouter callback with unknown or expired state")
        return _page(
            "Error",
            "Error",
            "This link has expired or is invalid. Please start again from the app.",
            status_code=400,
        )

    try:
        api_key = exchange_code(code, flow.code_verifier)
    except ExchangeError as e:
        return _page("OpenRouter", "OpenRouter authorization failed", str(e), status_code=502, link=flow.return_to)

    action = upsert_key(flow.user_id, api_key)
    logger.info("OpenRouter key %s for user_id=%s", action, flow.user_id)
    heading = "OpenRouter connected!" if action == "created" else "OpenRouter API key updated!"
    return _page(
        "OpenRouter",
        heading,
        "You can close this browser tab and return to the app.",
        link=flow.return_to,
    )


@app.get("/auth/openrouter/status")
def link_status(user_id: str):
    """Whether user_id has a linked key; polled by the desktop app while the browser flow runs."""
    return {"connected": get_key(user_id) is not None}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "openrouter_link.main:app",
        host="127.0.0.1",
        port=8000,
        reload=True,
    )
