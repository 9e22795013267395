# core/diff.py
from typing import Iterable, List, Tuple

from .models import ItemId


def diff_members(
    previous: Iterable[ItemId], current: Iterable[ItemId]
) -> Tuple[List[ItemId], List[ItemId]]:
    """
    Compute added and removed ids between two membership snapshots.
    - previous: ids held locally
    - current: ids reported elsewhere (e.g. by the remote store)
    Returns:
      (added_ids, removed_ids), each sorted for stable logging
    """
    old_ids = set(previous)
    new_ids = set(current)

    added = sorted(new_ids - old_ids)
    removed = sorted(old_ids - new_ids)

    return added, removed
