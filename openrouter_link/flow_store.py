"""
In-memory store for pending OpenRouter PKCE flows (state -> code_verifier, user_id, return_to).
Bridges /auth/openrouter and /callback when the system browser can't share the app's session.
Entries are single-use and expire after the TTL; a background thread sweeps abandoned ones.
"""
import logging
import secrets
import threading
import time
from dataclasses import dataclass
from typing import Callable

logger = logging.getLogger(__name__)

# Seconds a pending flow stays valid, and how often abandoned flows are swept
FLOW_TTL = 300.0
SWEEP_INTERVAL = 60.0


@dataclass(frozen=True)
class PendingFlow:
    code_verifier: str
    user_id: str
    return_to: str
    expires_at: float


def generate_state_token() -> str:
    """24 random bytes -> 32 chars base64url, no padding (192 bits)."""
    return secrets.token_urlsafe(24)


class PendingFlowStore:
    """
    Thread-safe table of pending flows keyed by state token.
    One lock guards a plain dict; insert, pop and sweep each hold it for a single map mutation.
    """

    def __init__(
        self,
        ttl: float = FLOW_TTL,
        sweep_interval: float = SWEEP_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl = ttl
        self.sweep_interval = sweep_interval
        self._clock = clock
        self._pending: dict[str, PendingFlow] = {}
        self._lock = threading.Lock()
        self._stopped = threading.Event()
        self._sweeper: threading.Thread | None = None

    def __len__(self) -> int:
        with self._lock:
            return len(self._pending)

    def __enter__(self) -> "PendingFlowStore":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()

    def store(self, code_verifier: str, user_id: str, return_to: str) -> str:
        """Save flow data under a fresh state token and return the token."""
        expires_at = self._clock() + self.ttl
        with self._lock:
            state = generate_state_token()
            while state in self._pending:
                state = generate_state_token()
            self._pending[state] = PendingFlow(
                code_verifier=code_verifier,
                user_id=user_id,
                return_to=return_to,
                expires_at=expires_at,
            )
        logger.debug("Stored pending flow state=%s... user_id=%s", state[:6], user_id)
        return state

    def fetch_and_delete(self, state_token: str) -> PendingFlow | None:
        """
        Pop the flow for state_token. Returns None if unknown, already consumed, or expired;
        an expired entry is still removed. Exactly one caller can ever receive a given flow.
        """
        with self._lock:
            flow = self._pending.pop(state_token, None)
        if flow is None:
            return None
        if self._clock() > flow.expires_at:
            logger.debug("Pending flow expired state=%s...", state_token[:6])
            return None
        return flow

    def sweep(self) -> int:
        """Remove every expired entry. Returns the number removed."""
        now = self._clock()
        with self._lock:
            expired = [s for s, f in self._pending.items() if f.expires_at < now]
            for s in expired:
                del self._pending[s]
        if expired:
            logger.debug("Swept %d expired pending flow(s)", len(expired))
        return len(expired)

    def start(self) -> None:
        """Start the background sweeper. No-op if already running."""
        if self._sweeper is not None and self._sweeper.is_alive():
            return
        self._stopped.clear()
        self._sweeper = threading.Thread(target=self._sweep_worker, name="pending-flow-sweeper", daemon=True)
        self._sweeper.start()
        logger.info("Pending flow sweeper started (ttl=%ss, interval=%ss)", self.ttl, self.sweep_interval)

    def stop(self) -> None:
        """Stop the sweeper and wait for it to exit. Entries are kept; nothing needs flushing."""
        self._stopped.set()
        sweeper = self._sweeper
        self._sweeper = None
        if sweeper is not None and sweeper is not threading.current_thread():
            sweeper.join()
            logger.info("Pending flow sweeper stopped")

    def _sweep_worker(self) -> None:
        while not self._stopped.wait(self.sweep_interval):
            try:
                self.sweep()
            except Exception:
                logger.exception("Pending flow sweep failed")
