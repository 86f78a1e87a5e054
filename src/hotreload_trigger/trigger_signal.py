"""Identity token that changes on every accepted trigger."""

import threading
import uuid
from datetime import datetime


class TriggerSignal:
    """Holds the current identity token and the time of the last accepted trigger."""

    def __init__(self):
        self._lock = threading.Lock()
        self._token = uuid.uuid4()
        self._last_triggered_at: datetime | None = None

    @property
    def token(self) -> uuid.UUID:
        with self._lock:
            return self._token

    @property
    def last_triggered_at(self) -> datetime | None:
        with self._lock:
            return self._last_triggered_at

    def bump(self) -> uuid.UUID:
        """Replace the token and record the trigger time.

        Returns:
            The new token
        """
        with self._lock:
            self._token = uuid.uuid4()
            self._last_triggered_at = datetime.now()
            return self._token
