"""Form preference routes backed by the ConfigStore."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from goagent.app.routes.auth import require_signed_agreement
from goagent.domain.enums import PreferenceKey
from goagent.domain.models import Profile
from goagent.domain.schemas import PreferenceValues
from goagent.infra.database import get_db
from goagent.services.config_store import ConfigStore, SqlConfigStore

router = APIRouter(prefix="/api/preferences", tags=["preferences"])


def get_config_store(db: AsyncSession = Depends(get_db)) -> ConfigStore:
    return SqlConfigStore(db)


@router.get("/{key}", response_model=PreferenceValues)
async def read_preference(
    key: PreferenceKey,
    user: Profile = Depends(require_signed_agreement),
    store: ConfigStore = Depends(get_config_store),
):
    return PreferenceValues(values=await store.get(user.id, key))


@router.put("/{key}", response_model=PreferenceValues)
async def write_preference(
    key: PreferenceKey,
    data: PreferenceValues,
    user: Profile = Depends(require_signed_agreement),
    store: ConfigStore = Depends(get_config_store),
):
    return PreferenceValues(values=await store.set(user.id, key, data.values))
