"""Story aggregation for epic charts and tables."""

from collections import Counter

# Story types shown in the type breakdown
DISPLAY_STORY_TYPES = ("feature", "chore", "bug")


def percentage(count, total) -> float:
    """Share of `total` in percent, 0 when there is nothing to divide."""
    if not total:
        return 0
    return count / total * 100


def _sort_by_count(counts: dict) -> dict:
    # sorted() is stable, so ties keep first-seen order
    return dict(sorted(counts.items(), key=lambda item: item[1], reverse=True))


def count_by_state(stories: list) -> dict:
    """Number of stories per workflow state id."""
    counts = {}
    for story in stories or []:
        state_id = story.get("workflow_state_id")
        counts[state_id] = counts.get(state_id, 0) + 1
    return counts


def count_by_type(stories: list) -> dict:
    """Number of stories per story type, including types that are not displayed."""
    return dict(Counter(story.get("story_type") for story in stories or []))


def count_by_owner(stories: list, resolve_name) -> tuple:
    """Tickets per owner display name.

    A story with several owners counts once for each of them, so the sum
    can exceed the number of stories.

    Returns:
        Tuple of (owner name -> count sorted by count descending,
        number of stories without owners)
    """
    counts = {}
    unassigned = 0

    for story in stories or []:
        owner_ids = story.get("owner_ids") or []
        if not owner_ids:
            unassigned += 1
            continue
        for owner_id in owner_ids:
            name = resolve_name(owner_id)
            counts[name] = counts.get(name, 0) + 1

    return _sort_by_count(counts), unassigned


def names_match(owner_name, roster_name) -> bool:
    """Loose name match: either name contains the other, ignoring case."""
    owner = (owner_name or "").strip().lower()
    member = (roster_name or "").strip().lower()
    if not owner or not member:
        return False
    return owner in member or member in owner


def count_open_tickets_by_roster(stories: list, roster: list, resolve_name,
                                 is_complete=None) -> dict:
    """Open tickets per roster member.

    Every roster name starts at 0. An owner whose name overlaps several
    roster names (e.g. "Dan" and "Dandre") credits all of them.

    Args:
        stories: Stories of one epic
        roster: Team member names configured for the epic
        resolve_name: Callable mapping an owner id to a display name
        is_complete: Callable taking a workflow state id; stories in a
            complete state are skipped

    Returns:
        Roster name -> open ticket count, sorted by count descending
    """
    counts = {name: 0 for name in roster or []}

    for story in stories or []:
        if is_complete is not None and is_complete(story.get("workflow_state_id")):
            continue
        for owner_id in story.get("owner_ids") or []:
            owner_name = resolve_name(owner_id)
            for roster_name in counts:
                if names_match(owner_name, roster_name):
                    counts[roster_name] += 1

    return _sort_by_count(counts)


def state_segments(state_counts: dict, index, total: int = None) -> list:
    """Chart segments for the tracked workflow states, in pipeline order.

    Percentages are taken over every story in the epic, so stories in
    untracked states lower the tracked shares.
    """
    if total is None:
        total = sum(state_counts.values())

    segments = []
    for state_id in index.tracked_state_ids():
        count = state_counts.get(state_id, 0)
        segments.append({
            "key": state_id,
            "label": index.state_name(state_id),
            "count": count,
            "percentage": percentage(count, total)
        })
    return segments


def type_segments(type_counts: dict) -> list:
    """Chart segments for feature/chore/bug.

    The denominator is the sum of the displayed types only, so the three
    percentages add up to 100 even when other story types exist.
    """
    displayed_total = sum(type_counts.get(story_type, 0) for story_type in DISPLAY_STORY_TYPES)
    return [
        {
            "key": story_type,
            "label": story_type.capitalize(),
            "count": type_counts.get(story_type, 0),
            "percentage": percentage(type_counts.get(story_type, 0), displayed_total)
        }
        for story_type in DISPLAY_STORY_TYPES
    ]


def count_segments(counts: dict) -> list:
    """Segments for an ordered name -> count mapping (owners, roster)."""
    total = sum(counts.values())
    return [
        {
            "key": name,
            "label": name,
            "count": count,
            "percentage": percentage(count, total)
        }
        for name, count in counts.items()
    ]


def summarize_epic(epic: dict, index, resolve_name, roster: list = None) -> dict:
    """All aggregations for one resolved epic with stories attached."""
    stories = epic.get("stories") or []
    total = len(stories)

    state_counts = count_by_state(stories)
    type_counts = count_by_type(stories)
    owner_counts, unassigned = count_by_owner(stories, resolve_name)
    roster_counts = count_open_tickets_by_roster(
        stories, roster or [], resolve_name, is_complete=index.is_complete
    )
    completed = sum(1 for story in stories if index.is_complete(story.get("workflow_state_id")))

    return {
        "totalStories": total,
        "completedStories": completed,
        "completionRate": round(percentage(completed, total), 1),
        "stateCounts": {str(k): v for k, v in state_counts.items()},
        "typeCounts": {str(k): v for k, v in type_counts.items()},
        "ownerCounts": owner_counts,
        "unassignedCount": unassigned,
        "rosterOpenCounts": roster_counts,
        "stateSegments": state_segments(state_counts, index, total),
        "typeSegments": type_segments(type_counts),
        "ownerSegments": count_segments(owner_counts),
        "rosterSegments": count_segments(roster_counts)
    }
