"""Integration tests for the profile store against a real SQLite database."""

import asyncio
from datetime import datetime, timezone
from pathlib import Path

import pytest
from sqlalchemy import func, select
from sqlalchemy.dialects import postgresql

from core.exceptions import StoreUnavailableError
from domain.entities.profile import ProfilePatch
from domain.services.profile_service import ProfileService
from infrastructure.container import ServiceContainer
from infrastructure.database.models import ProfileModel
from infrastructure.database.repositories.sqlalchemy_profile_repo import build_upsert
from tests.conftest import TEST_PHONE, make_settings


async def _row_count(container: ServiceContainer, phone: str) -> int:
    async with container.session_factory() as session:
        result = await session.execute(
            select(func.count()).select_from(ProfileModel).where(ProfileModel.phone == phone)
        )
        return result.scalar_one()


class TestUpsert:
    async def test_creates_profile(self, container: ServiceContainer):
        profile = await container.profile_service.upsert_by_phone(
            TEST_PHONE, ProfilePatch(full_name="Ana Tan", age=29)
        )

        assert profile.id is not None
        assert profile.phone == TEST_PHONE
        assert profile.full_name == "Ana Tan"
        assert profile.age == 29
        assert profile.created_at == profile.updated_at

        fetched = await container.profile_service.get_by_phone(TEST_PHONE)
        assert fetched == profile

    async def test_second_upsert_replaces_every_field(self, container: ServiceContainer):
        first = await container.profile_service.upsert_by_phone(
            TEST_PHONE, ProfilePatch(full_name="Ana Tan", age=29, address="1 Orchard Rd")
        )

        second = await container.profile_service.upsert_by_phone(
            TEST_PHONE, ProfilePatch(age=30)
        )

        assert second.id == first.id
        assert second.age == 30
        assert second.full_name is None
        assert second.address is None
        assert second.created_at == first.created_at
        assert second.updated_at > first.updated_at
        assert await _row_count(container, TEST_PHONE) == 1

    async def test_phones_are_independent(self, container: ServiceContainer):
        await container.profile_service.upsert_by_phone(TEST_PHONE, ProfilePatch(full_name="A"))
        await container.profile_service.upsert_by_phone("+6598765432", ProfilePatch(full_name="B"))

        first = await container.profile_service.get_by_phone(TEST_PHONE)
        assert first is not None
        assert first.full_name == "A"

    async def test_concurrent_upserts_leave_one_unmixed_row(self, container: ServiceContainer):
        patches = [
            ProfilePatch(full_name=f"name-{i}", age=i, address=f"addr-{i}") for i in range(5)
        ]

        await asyncio.gather(
            *(container.profile_service.upsert_by_phone(TEST_PHONE, p) for p in patches)
        )

        assert await _row_count(container, TEST_PHONE) == 1
        stored = await container.profile_service.get_by_phone(TEST_PHONE)
        assert stored is not None
        winner = ProfilePatch(
            full_name=stored.full_name, age=stored.age, address=stored.address
        )
        assert winner in patches

    async def test_updated_at_never_moves_backwards(self, container: ServiceContainer):
        times = iter(
            [
                datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc),
                datetime(2026, 3, 1, 11, 0, tzinfo=timezone.utc),
            ]
        )
        service = ProfileService(container.uow_factory, clock=lambda: next(times))

        first = await service.upsert_by_phone(TEST_PHONE, ProfilePatch(full_name="A"))
        second = await service.upsert_by_phone(TEST_PHONE, ProfilePatch(full_name="B"))

        assert second.full_name == "B"
        assert second.updated_at == first.updated_at
        assert second.updated_at >= second.created_at


class TestUpsertStatement:
    def test_postgres_update_always_advances_updated_at(self):
        stmt = build_upsert(
            "postgresql", TEST_PHONE, ProfilePatch(age=1), datetime.now(timezone.utc)
        )

        sql = str(stmt.compile(dialect=postgresql.dialect()))

        assert "ON CONFLICT (phone) DO UPDATE" in sql
        assert "updated_at = greatest(excluded.updated_at, profiles.updated_at +" in sql
        assert "RETURNING" in sql

    def test_unsupported_dialect_is_refused(self):
        with pytest.raises(NotImplementedError):
            build_upsert("mysql", TEST_PHONE, ProfilePatch(), datetime.now(timezone.utc))


class TestGet:
    async def test_absent_phone_returns_none_and_creates_nothing(
        self, container: ServiceContainer
    ):
        assert await container.profile_service.get_by_phone(TEST_PHONE) is None
        assert await _row_count(container, TEST_PHONE) == 0


class TestEnsureProfile:
    async def test_creates_bare_profile(self, container: ServiceContainer):
        profile = await container.profile_service.ensure_profile(TEST_PHONE)

        assert profile.id is not None
        assert profile.full_name is None
        assert await _row_count(container, TEST_PHONE) == 1

    async def test_does_not_overwrite_existing_fields(self, container: ServiceContainer):
        saved = await container.profile_service.upsert_by_phone(
            TEST_PHONE, ProfilePatch(full_name="Ana Tan")
        )

        ensured = await container.profile_service.ensure_profile(TEST_PHONE)

        assert ensured.id == saved.id
        assert ensured.full_name == "Ana Tan"
        assert ensured.updated_at == saved.updated_at


class TestUnavailableStore:
    async def test_unreachable_database_raises_store_unavailable(self, tmp_path: Path):
        settings = make_settings(tmp_path / "missing-dir" / "nested" / "x.db")
        container = ServiceContainer(settings)

        try:
            with pytest.raises(StoreUnavailableError):
                await container.profile_service.get_by_phone(TEST_PHONE)
        finally:
            await container.engine.dispose()
