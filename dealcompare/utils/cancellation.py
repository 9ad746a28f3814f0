import threading
import time
from typing import Optional

class CancellationToken:
    """Signals that the work started for a request should be abandoned.

    A token is cancelled explicitly with cancel() or implicitly once its
    deadline (seconds from creation) has passed.
    """

    def __init__(self, timeout: Optional[float] = None):
        self._event = threading.Event()
        self.deadline = time.monotonic() + timeout if timeout is not None else None

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def expired(self) -> bool:
        return self.deadline is not None and time.monotonic() >= self.deadline
