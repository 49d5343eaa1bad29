"""Resolve configured epic names to Shortcut epics with their stories."""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed

from services.shortcut_client import ShortcutAPIError, ShortcutAuthError

logger = logging.getLogger(__name__)

NOT_FOUND_PREFIX = "not-found-"


def not_found_epic(name: str) -> dict:
    """Placeholder for a configured name with no matching epic."""
    return {"id": f"{NOT_FOUND_PREFIX}{name}", "name": name, "notFound": True}


def find_exact_match(name: str, candidates: list):
    """First candidate whose name equals `name`, ignoring case and padding."""
    wanted = (name or "").strip().lower()
    for candidate in candidates or []:
        if (candidate.get("name") or "").strip().lower() == wanted:
            return candidate
    return None


class ResolutionResult:
    """Output of one resolution cycle.

    Attributes:
        epics: One entry per configured name, in configured order
        auth_failed: True if any remote call was rejected for auth reasons
    """

    def __init__(self, epics: list, auth_failed: bool = False):
        self.epics = epics
        self.auth_failed = auth_failed

    @property
    def resolved(self) -> list:
        return [epic for epic in self.epics if not epic.get("notFound")]

    @property
    def not_found(self) -> list:
        return [epic["name"] for epic in self.epics if epic.get("notFound")]


def _resolve_one(name: str, client) -> tuple:
    """Resolve a single name.

    Returns:
        Tuple of (epic dict, auth_failed)
    """
    try:
        candidates = client.search_epics(name)
    except ShortcutAuthError as e:
        logger.warning(f"Auth failure searching epic '{name}': {e}")
        return not_found_epic(name), True
    except ShortcutAPIError as e:
        logger.warning(f"Epic search failed for '{name}': {e}")
        return not_found_epic(name), False

    match = find_exact_match(name, candidates)
    if match is None:
        logger.info(f"No epic named '{name}' among {len(candidates or [])} search results")
        return not_found_epic(name), False

    # Keep the configured spelling; the match ignores case and padding
    epic = dict(match)
    epic["remoteName"] = match.get("name")
    epic["name"] = name
    epic["notFound"] = False

    # Stories can only be fetched once the epic id is known
    try:
        epic["stories"] = client.get_stories(epic["id"])
    except ShortcutAuthError as e:
        logger.warning(f"Auth failure fetching stories for epic {epic['id']}: {e}")
        return epic, True
    except ShortcutAPIError as e:
        logger.warning(f"Failed to fetch stories for epic {epic['id']}: {e}")

    return epic, False


def resolve_epics(names: list, client, max_workers: int = 6) -> ResolutionResult:
    """Resolve every configured epic name concurrently.

    Each name is searched independently; the results are joined once all
    lookups finish and placed back in configured order. A failure for one
    name never aborts the others.
    """
    names = list(names or [])
    if not names:
        return ResolutionResult([])

    epics = [None] * len(names)
    auth_failed = False

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = {
            executor.submit(_resolve_one, name, client): position
            for position, name in enumerate(names)
        }
        for future in as_completed(futures):
            position = futures[future]
            epic, position_auth_failed = future.result()
            epics[position] = epic
            auth_failed = auth_failed or position_auth_failed

    found = sum(1 for epic in epics if not epic.get("notFound"))
    logger.info(f"Resolved {found} of {len(names)} configured epics")

    return ResolutionResult(epics, auth_failed)
