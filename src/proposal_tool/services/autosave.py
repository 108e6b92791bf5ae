"""
Auto-save - debounced proposal writes.

Edits schedule a save; the write fires once after a quiet period and only
the latest payload is sent. The first save creates the proposal, later
saves update it. Latest write wins.
"""
import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)

IDLE = "idle"
SAVING = "saving"
SAVED = "saved"
ERROR = "error"


class AutoSaver:
    """
    Debounces proposal edits into single writes.

    Args:
        create: called with the payload when no proposal exists yet;
            returns the new proposal id
        update: called with (proposal_id, payload) for later saves
        debounce_seconds: quiet period before a write fires
        proposal_id: id of an already persisted proposal, if any
    """

    def __init__(self, create: Callable[[dict], int], update: Callable[[int, dict], object],
                 debounce_seconds: float = 1.5, proposal_id: Optional[int] = None):
        self.create = create
        self.update = update
        self.debounce_seconds = debounce_seconds
        self.proposal_id = proposal_id
        self.status = IDLE
        self.error_message: Optional[str] = None
        self.save_count = 0

        self._pending: Optional[dict] = None
        self._timer: Optional[threading.Timer] = None
        self._generation = 0
        self._lock = threading.Lock()

    @property
    def has_pending(self) -> bool:
        return self._pending is not None

    def schedule(self, payload: dict):
        """Queue a payload, restarting the quiet period."""
        with self._lock:
            self._pending = dict(payload)
            self._stop_timer()
            self._timer = threading.Timer(self.debounce_seconds, self._fire, args=(self._generation,))
            self._timer.daemon = True
            self._timer.start()

    def cancel(self):
        """Drop the pending write, if any."""
        with self._lock:
            self._stop_timer()
            self._pending = None

    def flush(self) -> bool:
        """
        Write the pending payload now.

        Returns True when a write happened and succeeded.
        """
        with self._lock:
            self._stop_timer()
            return self._write()

    def _fire(self, generation: int):
        with self._lock:
            # Timer superseded while it waited on the lock
            if generation != self._generation:
                return
            self._timer = None
            self._write()

    def _stop_timer(self):
        self._generation += 1
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _write(self) -> bool:
        payload, self._pending = self._pending, None
        if payload is None:
            return False

        self.status = SAVING
        try:
            if self.proposal_id is None:
                self.proposal_id = self.create(payload)
                logger.info("Auto-save created proposal %s", self.proposal_id)
            else:
                self.update(self.proposal_id, payload)
                logger.debug("Auto-save updated proposal %s", self.proposal_id)
        except Exception as e:
            self.status = ERROR
            self.error_message = str(e) or "Failed to save"
            logger.error("Auto-save failed: %s", self.error_message)
            return False

        self.status = SAVED
        self.error_message = None
        self.save_count += 1
        return True

    def reset_status(self):
        """Return to idle once a "saved" badge has been shown."""
        if self.status == SAVED:
            self.status = IDLE
