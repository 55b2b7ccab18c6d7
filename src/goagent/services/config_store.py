"""Per-user form preference lists (feature tags, quick feedback templates).

These populate the Drive Report choices. They are configuration, not domain
data, so stores fall back to the built-in defaults whenever nothing is saved.
"""

import logging
import uuid
from typing import Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from goagent.domain.enums import PreferenceKey
from goagent.domain.models import Preference

logger = logging.getLogger(__name__)

DEFAULT_FEATURES = [
    "Resident App",
    "Utility Billing",
    "Security Mgt",
    "Visitor Control",
    "Facility Mgt",
]

DEFAULT_QUICK_FEEDBACKS = [
    "Landlord is very interested in the billing automation.",
    "Security is the main priority for this facility manager.",
    "Property currently uses manual receipts and wants to go digital.",
    "Concerns about the initial setup fee for the hardware.",
    "Requested a follow-up demo for the board members.",
    "High occupancy but struggles with debt recovery from tenants.",
]

DEFAULTS: dict[PreferenceKey, list[str]] = {
    PreferenceKey.FEATURE_OPTIONS: DEFAULT_FEATURES,
    PreferenceKey.QUICK_FEEDBACKS: DEFAULT_QUICK_FEEDBACKS,
}

MAX_VALUES = 50


def normalize_values(values: list[str]) -> list[str]:
    """Strip, drop blanks and de-duplicate while keeping order."""
    seen: set[str] = set()
    cleaned = []
    for value in values:
        text = (value or "").strip()
        if text and text not in seen:
            seen.add(text)
            cleaned.append(text)
    return cleaned[:MAX_VALUES]


class ConfigStore(Protocol):
    async def get(self, owner_id: str, key: PreferenceKey) -> list[str]: ...

    async def set(self, owner_id: str, key: PreferenceKey, values: list[str]) -> list[str]: ...


class InMemoryConfigStore:
    """Process-local store, used by tests and single-process tools."""

    def __init__(self):
        self._data: dict[tuple[str, PreferenceKey], list[str]] = {}

    async def get(self, owner_id: str, key: PreferenceKey) -> list[str]:
        return list(self._data.get((owner_id, key), DEFAULTS[key]))

    async def set(self, owner_id: str, key: PreferenceKey, values: list[str]) -> list[str]:
        cleaned = normalize_values(values)
        self._data[(owner_id, key)] = cleaned
        return list(cleaned)


class SqlConfigStore:
    """Preference lists persisted in the ``preferences`` table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _row(self, owner_id: str, key: PreferenceKey) -> Preference | None:
        result = await self.db.execute(
            select(Preference).where(
                Preference.owner_id == owner_id,
                Preference.key == key.value,
            )
        )
        return result.scalar_one_or_none()

    async def get(self, owner_id: str, key: PreferenceKey) -> list[str]:
        row = await self._row(owner_id, key)
        if row is None:
            return list(DEFAULTS[key])
        return list(row.values or [])

    async def set(self, owner_id: str, key: PreferenceKey, values: list[str]) -> list[str]:
        cleaned = normalize_values(values)
        row = await self._row(owner_id, key)
        if row is None:
            row = Preference(id=str(uuid.uuid4()), owner_id=owner_id, key=key.value)
            self.db.add(row)
        row.values = cleaned
        await self.db.commit()
        logger.info("Saved %d %s for %s", len(cleaned), key.value, owner_id)
        return list(cleaned)
