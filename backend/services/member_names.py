"""Owner id to display name cache for one search cycle."""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor

from services.shortcut_client import ShortcutAPIError, ShortcutAuthError

logger = logging.getLogger(__name__)


class MemberNameCache:
    """Lazily resolves Shortcut member ids to display names.

    Names are never invalidated while the cache lives, so a renamed member
    keeps the old name until the next cycle. Failed lookups fall back to
    the raw id and are not cached.
    """

    def __init__(self, client, max_workers: int = 6):
        self.client = client
        self.max_workers = max_workers
        self.auth_failed = False
        self._names = {}
        self._lock = threading.Lock()

    def _fetch(self, owner_id):
        try:
            user = self.client.get_user(owner_id)
        except ShortcutAuthError as e:
            logger.warning(f"Auth failure resolving member {owner_id}: {e}")
            with self._lock:
                self.auth_failed = True
            return None
        except ShortcutAPIError as e:
            logger.warning(f"Could not resolve member {owner_id}: {e}")
            return None

        name = user.get("displayName") or str(owner_id)
        with self._lock:
            self._names[owner_id] = name
        return name

    def resolve(self, owner_id) -> str:
        """Get the display name for an owner id, fetching it if unknown."""
        with self._lock:
            if owner_id in self._names:
                return self._names[owner_id]

        name = self._fetch(owner_id)
        return name if name is not None else str(owner_id)

    def prefetch(self, owner_ids) -> None:
        """Fetch every unknown id concurrently."""
        with self._lock:
            missing = []
            for owner_id in owner_ids:
                if owner_id not in self._names and owner_id not in missing:
                    missing.append(owner_id)

        if not missing:
            return

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            list(executor.map(self._fetch, missing))
