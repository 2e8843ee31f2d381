"""
Patch Orchestrator.

Single-flight add-server workflow: validate the id typed by the user, ask
the host to patch the game for it and refresh the registry on success.
Only one patch may run at a time in the whole process.
"""

import asyncio
from typing import Awaitable, Callable, List, Optional

from gdps_launcher.core.exceptions import HostError, PatchInProgressError, ValidationError
from gdps_launcher.core.host.base import GameHost
from gdps_launcher.core.models import PatchPhase, PatchSession
from gdps_launcher.utils.logging import get_logger
from gdps_launcher.utils.validators import normalize_server_id

logger = get_logger(__name__)

SessionListener = Callable[[PatchSession], None]

STATUS_PATCHING = "Patching game..."
STATUS_DONE = "Done!"

# Process-wide: every orchestrator shares the same patch slot
_patch_lock: Optional[asyncio.Lock] = None


def _get_patch_lock() -> asyncio.Lock:
    global _patch_lock
    if _patch_lock is None:
        _patch_lock = asyncio.Lock()
    return _patch_lock


class PatchOrchestrator:
    """Drives the add-server dialog and the patch state machine."""

    def __init__(
        self,
        host: GameHost,
        on_success: Optional[Callable[[str], Awaitable[object]]] = None,
        lock: Optional[asyncio.Lock] = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            host: Native host performing the patch
            on_success: Coroutine function awaited once after each successful
                patch, with the patched id (normally a registry refresh)
            lock: Patch lock; defaults to the process-wide lock
        """
        self.host = host
        self.on_success = on_success
        self._lock = lock or _get_patch_lock()
        self._session = PatchSession()
        self._listeners: List[SessionListener] = []

    @property
    def session(self) -> PatchSession:
        return self._session

    @property
    def is_patching(self) -> bool:
        """Whether any patch is running in this process."""
        return self._lock.locked()

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Register a listener for session updates."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def open_dialog(self) -> PatchSession:
        """Start a fresh session with the dialog shown."""
        if self._session.is_patching:
            return self._session
        return self._update(PatchSession(dialog_open=True))

    def set_input(self, text: str) -> PatchSession:
        """Update the id typed into the dialog."""
        if self._session.is_patching:
            return self._session
        return self._update(self._session.model_copy(update={"input_id": text}))

    def cancel(self) -> bool:
        """
        Close the dialog and discard the session.

        Returns:
            False if a patch is running; the host call cannot be cancelled
        """
        if self._session.is_patching:
            logger.debug("Ignoring cancel while patching")
            return False
        self._update(PatchSession())
        return True

    async def begin_patch(self, raw_input: Optional[str] = None) -> PatchSession:
        """
        Run the add-server workflow to completion.

        Args:
            raw_input: Id typed by the user; defaults to the dialog input

        Returns:
            The finished session (``succeeded`` or ``failed``)

        Raises:
            PatchInProgressError: If another patch is running; the running
                session is not touched
        """
        if self._lock.locked():
            logger.warning("Patch rejected: another patch is in progress")
            raise PatchInProgressError()

        if raw_input is None:
            raw_input = self._session.input_id

        self._update(PatchSession(
            input_id=raw_input,
            phase=PatchPhase.VALIDATING,
            dialog_open=True,
        ))

        try:
            server_id = normalize_server_id(raw_input)
        except ValidationError as e:
            logger.info(f"Rejected server id {raw_input!r}: {e.message}")
            return self._update(self._session.model_copy(update={
                "phase": PatchPhase.FAILED,
                "status_message": e.message,
                "error_code": e.error_code,
            }))

        # No await between the locked() check and here, so nothing can slip in
        async with self._lock:
            self._update(self._session.model_copy(update={
                "input_id": server_id,
                "phase": PatchPhase.PATCHING,
                "status_message": STATUS_PATCHING,
            }))
            try:
                await self.host.patch_game(server_id)
            except Exception as e:
                cause = e.message if isinstance(e, HostError) else str(e) or e.__class__.__name__
                logger.error(f"Patch failed for {server_id}: {cause}")
                return self._update(self._session.model_copy(update={
                    "phase": PatchPhase.FAILED,
                    "status_message": f"Error: {cause}",
                    "error_code": getattr(e, "error_code", None) or "patch_failed",
                }))

            logger.info(f"Patched game for server {server_id}")
            finished = self._update(PatchSession(
                input_id="",
                phase=PatchPhase.SUCCEEDED,
                status_message=STATUS_DONE,
                dialog_open=False,
            ))

        if self.on_success is not None:
            await self.on_success(server_id)
        return finished

    def _update(self, session: PatchSession) -> PatchSession:
        self._session = session
        for listener in list(self._listeners):
            try:
                listener(session)
            except Exception:
                logger.exception("Patch session listener failed")
        return session
