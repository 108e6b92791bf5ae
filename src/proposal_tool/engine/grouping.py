"""
Upgrade grouping - builds the Category → Location → Parent Selection tree.

Upgrades are stored flat and grouped only at read time. The tree is
rebuilt from scratch whenever the upgrade set changes, so every function
here is pure.
"""
from typing import Iterable

from .models import Upgrade

NO_LOCATION = "N/A"

GroupedUpgrades = dict[str, dict[str, dict[str, list[Upgrade]]]]


def location_label(upgrade: Upgrade) -> str:
    return (upgrade.location or "").strip() or NO_LOCATION


def parent_label(upgrade: Upgrade) -> str:
    """Parent selection name; an upgrade without one forms its own group."""
    return (upgrade.parent_selection or "").strip() or upgrade.choice_title


def selection_key(upgrade: Upgrade) -> tuple[str, str, str]:
    """The (category, location, parent selection) triple of an upgrade."""
    return (upgrade.category, location_label(upgrade), parent_label(upgrade))


def _choice_order(upgrade: Upgrade):
    return (upgrade.choice_title, str(upgrade.id))


def sort_upgrades(upgrades: Iterable[Upgrade]) -> list[Upgrade]:
    """Flat ordering that matches the grouped tree walk."""
    return sorted(upgrades, key=lambda u: (*selection_key(u), *_choice_order(u)))


def group_upgrades(upgrades: Iterable[Upgrade]) -> GroupedUpgrades:
    """
    Group a flat upgrade list into category → location → parent selection.

    Keys are inserted in lexicographic order at every level and each leaf
    list is ordered by choice title, so dict iteration order is the display
    order.
    """
    grouped: GroupedUpgrades = {}
    for upgrade in sort_upgrades(upgrades):
        category, location, parent = selection_key(upgrade)
        grouped.setdefault(category, {}).setdefault(location, {}).setdefault(parent, []).append(upgrade)
    return grouped


def flatten_groups(grouped: GroupedUpgrades) -> list[Upgrade]:
    """Walk a grouped tree back into display order."""
    return [
        upgrade
        for locations in grouped.values()
        for parents in locations.values()
        for choices in parents.values()
        for upgrade in choices
    ]


def count_upgrades(grouped: GroupedUpgrades, category: str) -> int:
    """Number of upgrades listed under a category header."""
    return sum(
        len(choices)
        for parents in grouped.get(category, {}).values()
        for choices in parents.values()
    )
