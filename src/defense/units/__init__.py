"""Unit type registry — enemy and tower kinds as static data.

Concrete kinds are discovered from the subclasses of EnemyType and
TowerType once their modules are imported below.  Lookups return None
for unknown ids so callers can reject bad input without exceptions.
"""

from __future__ import annotations

from .base import EnemyType, TowerType
from . import enemies as _enemies  # noqa: F401  (registers subclasses)
from . import towers as _towers  # noqa: F401

_ENEMY_TYPES: dict[str, type[EnemyType]] = {
    cls.type_id: cls for cls in EnemyType.__subclasses__()
}
_TOWER_TYPES: dict[str, type[TowerType]] = {
    cls.type_id: cls for cls in TowerType.__subclasses__()
}


def get_enemy_type(type_id: str) -> type[EnemyType] | None:
    return _ENEMY_TYPES.get(type_id)


def get_tower_type(type_id: str) -> type[TowerType] | None:
    return _TOWER_TYPES.get(type_id)


def all_enemy_types() -> list[type[EnemyType]]:
    return list(_ENEMY_TYPES.values())


def all_tower_types() -> list[type[TowerType]]:
    return list(_TOWER_TYPES.values())


def tower_costs() -> dict[str, int]:
    """Gold cost per tower kind, for shop/button rendering."""
    return {type_id: cls.cost for type_id, cls in _TOWER_TYPES.items()}


__all__ = [
    "EnemyType",
    "TowerType",
    "all_enemy_types",
    "all_tower_types",
    "get_enemy_type",
    "get_tower_type",
    "tower_costs",
]
