# hospidesk/services/display.py
"""
Display attributes of the closed enumerations (labels, colors, icons).

Every table is keyed by the full enum; `_exhaustive` fails at import time if a
member is missing, so adding a status/category without its display entry
cannot ship.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Mapping, Optional, TypeVar

from hospidesk.db.models import Role, TicketCategory, TicketPriority, TicketStatus

E = TypeVar("E", bound=Enum)

FALLBACK_COLOR = "#666"


@dataclass(frozen=True)
class Badge:
    label: str
    color: str = FALLBACK_COLOR
    icon: Optional[str] = None


def _exhaustive(enum_cls: type[E], table: Mapping[E, Badge]) -> Mapping[E, Badge]:
    missing = set(enum_cls) - set(table)
    if missing:
        raise RuntimeError(f"{enum_cls.__name__}: no display entry for {sorted(m.value for m in missing)}")
    return table


STATUS = _exhaustive(TicketStatus, {
    TicketStatus.open: Badge("Abierto", "#2196F3", "alert-circle-outline"),
    TicketStatus.in_progress: Badge("En Progreso", "#FF9800", "progress-clock"),
    TicketStatus.pending: Badge("Pendiente", "#9C27B0", "pause-circle-outline"),
    TicketStatus.resolved: Badge("Resuelto", "#1B5E20", "check-circle-outline"),
    TicketStatus.closed: Badge("Cerrado", "#607D8B", "lock-outline"),
})

PRIORITY = _exhaustive(TicketPriority, {
    TicketPriority.low: Badge("Baja", "#1B5E20"),
    TicketPriority.medium: Badge("Media", "#FF9800"),
    TicketPriority.high: Badge("Alta", "#F44336"),
})

CATEGORY = _exhaustive(TicketCategory, {
    TicketCategory.hardware: Badge("Hardware", icon="memory"),
    TicketCategory.software: Badge("Software", icon="apps"),
    TicketCategory.network: Badge("Redes", icon="wifi"),
    TicketCategory.printer: Badge("Impresoras", icon="printer-outline"),
    TicketCategory.user_support: Badge("Soporte Usuario", icon="account-circle-outline"),
    TicketCategory.other: Badge("Otro", icon="help-circle-outline"),
})

ROLE = _exhaustive(Role, {
    Role.admin: Badge("Admin", icon="shield-checkmark"),
    Role.patient: Badge("Paciente", icon="person"),
})

UNKNOWN_ROLE = Badge("Usuario", icon="help-circle")


def status_badge(status: TicketStatus) -> Badge:
    return STATUS[TicketStatus(status)]


def priority_badge(priority: TicketPriority) -> Badge:
    return PRIORITY[TicketPriority(priority)]


def category_badge(category: TicketCategory) -> Badge:
    return CATEGORY[TicketCategory(category)]


def role_badge(role: Optional[Role]) -> Badge:
    if role is None:
        return UNKNOWN_ROLE
    return ROLE[Role(role)]


def is_color_light(color: str) -> bool:
    """Perceived brightness of a #RRGGBB color above 155."""
    if not color or not color.startswith("#"):
        return False
    hex_ = color[1:]
    if len(hex_) != 6:
        return False
    try:
        r, g, b = (int(hex_[i:i + 2], 16) for i in (0, 2, 4))
    except ValueError:
        return False
    return (r * 299 + g * 587 + b * 114) / 1000 > 155


def text_color_on(color: str) -> str:
    return "#000" if is_color_light(color) else "#FFF"


def greeting(now: datetime) -> str:
    if now.hour < 12:
        return "Buenos días"
    if now.hour < 18:
        return "Buenas tardes"
    return "Buenas noches"


def format_date(value: Optional[datetime]) -> str:
    if value is None:
        return "Fecha inválida"
    return value.strftime("%d/%m/%Y %H:%M")
