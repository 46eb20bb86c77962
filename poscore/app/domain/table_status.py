"""Table status enumeration and allowed transitions."""

from __future__ import annotations

from enum import Enum


class TableStatus(str, Enum):
    """Enumerate the states a dining table can be in."""

    AVAILABLE = "available"
    OCCUPIED = "occupied"
    RESERVED = "reserved"


# Staff may correct any mistake, so every state reaches every other state.
TRANSITIONS: dict[TableStatus, list[TableStatus]] = {
    status: [other for other in TableStatus] for status in TableStatus
}

# Labels emitted by the Spanish-language floor tools.
ALIASES: dict[str, TableStatus] = {
    "disponible": TableStatus.AVAILABLE,
    "ocupada": TableStatus.OCCUPIED,
    "reservada": TableStatus.RESERVED,
}


def can_transition(src: TableStatus, dst: TableStatus) -> bool:
    """Return ``True`` if a table can move from ``src`` to ``dst``."""

    return dst in TRANSITIONS.get(src, [])


def parse_status(raw: str | TableStatus) -> TableStatus:
    """Return the :class:`TableStatus` for ``raw``.

    Accepts enum members, canonical values and the Spanish aliases. Raises
    :class:`ValueError` for anything else.
    """

    if isinstance(raw, TableStatus):
        return raw
    key = str(raw).strip().lower()
    if key in ALIASES:
        return ALIASES[key]
    return TableStatus(key)
