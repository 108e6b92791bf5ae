"""
Selection rules for upgrade options.

Choices sharing a (category, location, parent selection) triple behave like
radio buttons: selecting one deselects its siblings.
"""
from collections import defaultdict
from typing import Iterable, Mapping, Union

from .grouping import selection_key
from .models import Upgrade

UpgradeCatalog = Union[Mapping[int, Upgrade], Iterable[Upgrade]]


def _index(upgrades: UpgradeCatalog) -> dict[int, Upgrade]:
    if isinstance(upgrades, Mapping):
        return dict(upgrades)
    return {u.id: u for u in upgrades}


def toggle_selection(selected: Iterable[int], upgrade_id: int, upgrades: UpgradeCatalog) -> set[int]:
    """
    Toggle one upgrade in a selection set.

    A selected id is removed. An unselected id is added after every other
    selected id with the same selection key is removed.

    Returns a new set; ``selected`` is left untouched.

    Raises:
        ValueError: if the id is not selected and not in the catalog
    """
    current = set(selected)
    if upgrade_id in current:
        current.discard(upgrade_id)
        return current

    catalog = _index(upgrades)
    if upgrade_id not in catalog:
        raise ValueError(f"Upgrade {upgrade_id} not found")

    key = selection_key(catalog[upgrade_id])
    current = {
        sid for sid in current
        if sid not in catalog or selection_key(catalog[sid]) != key
    }
    current.add(upgrade_id)
    return current


def find_conflicts(selected: Iterable[int], upgrades: UpgradeCatalog) -> dict[tuple[str, str, str], list[int]]:
    """Selection keys that currently hold more than one selected upgrade."""
    catalog = _index(upgrades)
    by_key = defaultdict(list)
    for sid in selected:
        if sid in catalog:
            by_key[selection_key(catalog[sid])].append(sid)
    return {key: ids for key, ids in by_key.items() if len(ids) > 1}


def normalize_selection(selected_ids: Iterable[int], upgrades: UpgradeCatalog) -> tuple[list[int], list[str]]:
    """
    Repair a persisted selection list.

    Unknown ids are dropped and, where a group holds several ids, the one
    listed last wins. Order of the surviving ids is preserved.

    Returns (ids, warnings).
    """
    catalog = _index(upgrades)
    warnings = []
    winners: dict[tuple[str, str, str], int] = {}
    seen = []

    for sid in selected_ids:
        if sid not in catalog:
            warnings.append(f"Selected upgrade {sid} is no longer offered and was dropped")
            continue
        key = selection_key(catalog[sid])
        previous = winners.get(key)
        if previous is not None and previous != sid:
            warnings.append(
                f"'{catalog[previous].choice_title}' replaced by '{catalog[sid].choice_title}' in {key[2]}"
            )
        winners[key] = sid
        if sid not in seen:
            seen.append(sid)

    keep = set(winners.values())
    return [sid for sid in seen if sid in keep], warnings
