"""SQLAlchemy implementation of Profile repository."""

from datetime import datetime, timedelta
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from domain.entities.profile import Profile, ProfilePatch
from infrastructure.database.errors import translate_store_errors
from infrastructure.database.models import ProfileModel

_PATCH_COLUMNS = ("full_name", "age", "address", "avatar_url")
_TICK = timedelta(microseconds=1)


def _dialect_insert(dialect: str) -> Any:
    """Pick the INSERT construct that supports ON CONFLICT for this backend."""
    if dialect == "postgresql":
        return postgresql.insert
    if dialect == "sqlite":
        return sqlite.insert
    raise NotImplementedError(f"Upsert is not supported on {dialect}")


def build_upsert(dialect: str, phone: str, patch: ProfilePatch, now: datetime) -> Any:
    """INSERT ... ON CONFLICT (phone) DO UPDATE ... RETURNING for one profile.

    updated_at never moves backwards, even when the writing host's clock is
    behind the stored value. On PostgreSQL it always changes, which also
    keeps the set_updated_at trigger from substituting the database clock.
    """
    stmt = _dialect_insert(dialect)(ProfileModel).values(
        phone=phone,
        created_at=now,
        updated_at=now,
        **patch.as_values(),
    )
    set_: dict[str, Any] = {column: stmt.excluded[column] for column in _PATCH_COLUMNS}
    if dialect == "postgresql":
        set_["updated_at"] = func.greatest(
            stmt.excluded.updated_at, ProfileModel.updated_at + _TICK
        )
    else:
        set_["updated_at"] = func.max(stmt.excluded.updated_at, ProfileModel.updated_at)
    return stmt.on_conflict_do_update(
        index_elements=[ProfileModel.phone],
        set_=set_,
    ).returning(ProfileModel)


class SQLAlchemyProfileRepository:
    """SQLAlchemy implementation of IProfileRepository.

    Writes are single ``INSERT ... ON CONFLICT (phone)`` statements, so
    concurrent writers for one phone serialize on the unique index and
    never leave a row mixing two patches.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_phone(self, phone: str) -> Profile | None:
        """Get the profile for a phone number."""
        stmt = select(ProfileModel).where(ProfileModel.phone == phone)
        with translate_store_errors():
            result = await self._session.execute(stmt)
            model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def upsert_by_phone(
        self, phone: str, patch: ProfilePatch, now: datetime
    ) -> Profile:
        """Insert the profile, or overwrite every patchable field on conflict."""
        stmt = build_upsert(self._dialect(), phone, patch, now)
        with translate_store_errors():
            result = await self._session.execute(
                stmt, execution_options={"populate_existing": True}
            )
            model = result.scalar_one()
        return self._to_entity(model)

    async def insert_if_absent(self, phone: str, now: datetime) -> Profile:
        """Create a bare profile for the phone unless one already exists."""
        stmt = (
            _dialect_insert(self._dialect())(ProfileModel)
            .values(phone=phone, created_at=now, updated_at=now)
            .on_conflict_do_nothing(index_elements=[ProfileModel.phone])
        )
        with translate_store_errors():
            await self._session.execute(stmt)
            result = await self._session.execute(
                select(ProfileModel).where(ProfileModel.phone == phone),
                execution_options={"populate_existing": True},
            )
            model = result.scalar_one()
        return self._to_entity(model)

    def _dialect(self) -> str:
        return self._session.get_bind().dialect.name

    def _to_entity(self, model: ProfileModel) -> Profile:
        """Convert ORM model to domain entity."""
        return Profile(
            id=model.id,
            phone=model.phone,
            full_name=model.full_name,
            age=model.age,
            address=model.address,
            avatar_url=model.avatar_url,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )
