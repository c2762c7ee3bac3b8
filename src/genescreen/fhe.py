"""FheRuntime — process-wide lifecycle of the FHE subsystem.

The SDK must load key material before any encryption or decryption can
run.  Initialisation is gated on a connected wallet and goes through an
explicit state object::

    uninitialized ──► initializing ──► ready
                           │
                           └──► failed ──► (retry) initializing

``ensure_ready`` is the single writer.  It is guarded by an
``asyncio.Lock`` so concurrent triggers (several requests arriving right
after a wallet connects) collapse into one ``initialize()`` call.  Phase
changes are broadcast to subscribers.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from typing import Callable

from genescreen.errors import NotConnected, NotInitialized
from genescreen.interfaces import FheSdk
from genescreen.notifications import Notifier

logger = logging.getLogger(__name__)


class FhePhase(str, enum.Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
    FAILED = "failed"


PhaseListener = Callable[["FhePhase", "str | None"], None]


class FheRuntime:
    """Explicit ``{phase, last_error}`` state around an :class:`FheSdk`.

    Args:
        sdk: the FHE SDK adapter; ``None`` leaves the runtime permanently
            uninitialized (encryption and decryption report
            ``NotInitialized``)
        notifier: optional sink for the user-facing failure message
    """

    def __init__(self, sdk: FheSdk | None, notifier: Notifier | None = None) -> None:
        self._sdk = sdk
        self._notifier = notifier
        self._phase = FhePhase.UNINITIALIZED
        self._last_error: str | None = None
        self._lock = asyncio.Lock()
        self._listeners: list[PhaseListener] = []

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def phase(self) -> FhePhase:
        return self._phase

    @property
    def last_error(self) -> str | None:
        return self._last_error

    @property
    def is_ready(self) -> bool:
        return self._phase is FhePhase.READY

    @property
    def status(self) -> str:
        """Human-readable progress, preferring the SDK's own status text."""
        if self._phase is FhePhase.INITIALIZING:
            return "Initializing FHEVM"
        if self._sdk is not None and self._sdk.status:
            return self._sdk.status
        return self._phase.value

    def subscribe(self, listener: PhaseListener) -> Callable[[], None]:
        """Register ``listener(phase, last_error)``; return an unsubscriber."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def require_ready(self) -> None:
        """Raise ``NotInitialized`` unless the subsystem is ready."""
        if not self.is_ready:
            raise NotInitialized(
                f"FHE subsystem is not ready (phase={self._phase.value})"
            )

    # ------------------------------------------------------------------
    # Initialisation
    # ------------------------------------------------------------------

    async def ensure_ready(self, *, connected: bool) -> FhePhase:
        """Initialise the SDK once a wallet is connected.

        Returns the resulting phase.  Failures are recorded in
        ``last_error`` and leave the runtime in ``failed``, from which the
        next call retries.

        Raises:
            NotConnected: if no wallet is connected
        """
        if not connected:
            raise NotConnected()
        if self.is_ready:
            return self._phase

        async with self._lock:
            # Another caller may have finished while we waited on the lock.
            if self.is_ready:
                return self._phase
            if self._sdk is None:
                self._last_error = "No FHE SDK configured"
                logger.warning("FHE initialization skipped: no SDK configured")
                return self._phase

            self._transition(FhePhase.INITIALIZING, None)
            logger.info("Initializing FHEVM after wallet connection...")
            try:
                await self._sdk.initialize()
            except Exception as exc:
                logger.error("Failed to initialize FHEVM: %s", exc)
                self._transition(FhePhase.FAILED, str(exc) or type(exc).__name__)
                if self._notifier is not None:
                    self._notifier.error(
                        "FHEVM initialization failed. "
                        "Please check your wallet connection."
                    )
                return self._phase

            logger.info("FHEVM initialized successfully")
            self._transition(FhePhase.READY, None)
            return self._phase

    def _transition(self, phase: FhePhase, error: str | None) -> None:
        self._phase = phase
        self._last_error = error
        for listener in list(self._listeners):
            try:
                listener(phase, error)
            except Exception:
                logger.exception("FHE phase listener failed")
