# leadflow/models/enums.py
"""
Closed vocabularies shared by the ORM models, schemas and services.

Values are the wire/storage strings already used by the dashboard and the
landing pages; member names are what the code refers to.
"""
from __future__ import annotations

from enum import Enum
from typing import List, Type

from sqlalchemy import Enum as SAEnum


class LeadState(str, Enum):
    NEW = "nuevo"
    CONTACTED = "contactado"
    QUALIFIED = "cualificado"
    MEETING = "reunion"
    QUOTED = "presupuestado"
    NEGOTIATING = "negociacion"
    WON = "ganado"
    LOST = "perdido"


class LeadSource(str, Enum):
    LANDING = "landing"
    PAID_SEARCH = "google_ads"
    ORGANIC = "organico"
    REFERRAL = "referido"
    SOCIAL = "redes_sociales"
    DIRECT = "directo"
    OTHER = "otro"


class LeadPriority(str, Enum):
    LOW = "baja"
    MEDIUM = "media"
    HIGH = "alta"
    URGENT = "urgente"


class ActivityType(str, Enum):
    CREATION = "creacion"
    NOTE = "nota"
    CALL = "llamada"
    EMAIL = "email"
    MEETING = "reunion"
    CHAT = "whatsapp"
    QUOTE_SENT = "presupuesto_enviado"
    QUOTE_UPDATED = "presupuesto_actualizado"
    STATE_CHANGE = "cambio_estado"
    SALE_WON = "venta_cerrada"
    SALE_LOST = "venta_perdida"


# Activities a user may record by hand; the rest are written by the system.
MANUAL_ACTIVITY_TYPES = frozenset(
    {
        ActivityType.NOTE,
        ActivityType.CALL,
        ActivityType.EMAIL,
        ActivityType.MEETING,
        ActivityType.CHAT,
        ActivityType.QUOTE_SENT,
        ActivityType.QUOTE_UPDATED,
    }
)


class ExpenseType(str, Enum):
    ADS = "anuncios"
    TRAVEL = "desplazamiento"
    MATERIALS = "material"
    PLATFORM_FEE = "comision_plataforma"
    OTHER = "otro"


def enum_values(enum_cls: Type[Enum]) -> List[str]:
    return [member.value for member in enum_cls]


def db_enum(enum_cls: Type[Enum], name: str) -> SAEnum:
    """Column type storing the enum's values rather than its member names."""
    return SAEnum(
        enum_cls,
        name=name,
        values_callable=enum_values,
        validate_strings=True,
    )
