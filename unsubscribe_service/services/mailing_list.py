"""In-memory mailing list of subscribed recipients."""

import logging
import threading
from collections.abc import Iterable

logger = logging.getLogger(__name__)


class MailingList:
    """Set of subscribed addresses, seeded from configuration at startup.

    Changes live only as long as the process; a restart reverts to the
    configured baseline.
    """

    def __init__(self, emails: Iterable[str] = ()) -> None:
        self._emails: set[str] = set(emails)
        self._lock = threading.Lock()

    def contains(self, email: str) -> bool:
        with self._lock:
            return email in self._emails

    def remove(self, email: str) -> bool:
        """Remove ``email`` if subscribed. Returns False if it was already gone."""
        with self._lock:
            if email not in self._emails:
                return False
            self._emails.remove(email)
        logger.info("Removed %s from the mailing list", email)
        return True

    def snapshot(self) -> frozenset[str]:
        with self._lock:
            return frozenset(self._emails)

    def __contains__(self, email: object) -> bool:
        return isinstance(email, str) and self.contains(email)

    def __len__(self) -> int:
        with self._lock:
            return len(self._emails)
