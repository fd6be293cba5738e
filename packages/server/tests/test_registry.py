"""
Tests for the event type registry.

Tests cover:
- Name resolution for active types
- Inactive and unknown types are not resolvable
- Lookup by id
- Idempotent bootstrap seeding that skips names already present
"""

import uuid

import pytest

from app.core.errors import NotFoundError
from app.services import registry


class TestResolve:
    @pytest.mark.asyncio
    async def test_resolves_seeded_types(self, session):
        for attrs in registry.EVENT_TYPE_CATALOG:
            event_type = await registry.resolve(session, attrs["name"])
            assert event_type.category == attrs["category"]

    @pytest.mark.asyncio
    async def test_unknown_name(self, session):
        with pytest.raises(NotFoundError, match="Event type not found: overtime"):
            await registry.resolve(session, "overtime")

    @pytest.mark.asyncio
    async def test_inactive_type_is_hidden(self, session):
        task = await registry.resolve(session, "task")
        task.is_active = False
        await session.flush()

        with pytest.raises(NotFoundError):
            await registry.resolve(session, "task")
        names = [t.name for t in await registry.list_event_types(session)]
        assert "task" not in names

    @pytest.mark.asyncio
    async def test_get_by_id(self, session):
        shift = await registry.resolve(session, "shift")
        assert await registry.get_event_type(session, shift.id) is shift
        with pytest.raises(NotFoundError, match="Event type not found"):
            await registry.get_event_type(session, uuid.uuid4())

    @pytest.mark.asyncio
    async def test_nesting_metadata(self, session):
        employment = await registry.resolve(session, "employment")
        shift = await registry.resolve(session, "shift")
        piece = await registry.resolve(session, "payroll_piece")
        assert not employment.can_nest and employment.can_have_children
        assert shift.can_nest and shift.rules["allowed_parents"] == ["employment"]
        assert piece.requires_participation is False


class TestSeeding:
    @pytest.mark.asyncio
    async def test_seed_is_idempotent(self, session):
        created = await registry.seed_event_types(session)
        assert created == []
        types = await registry.list_event_types(session)
        assert len(types) == len(registry.EVENT_TYPE_CATALOG)

    @pytest.mark.asyncio
    async def test_seed_adds_only_new_rows(self, session):
        catalog = registry.EVENT_TYPE_CATALOG + [{"name": "training", "category": "work", "can_nest": True}]
        created = await registry.seed_event_types(session, catalog)
        assert [t.name for t in created] == ["training"]
        training = await registry.resolve(session, "training")
        assert training.requires_participation is True

    @pytest.mark.asyncio
    async def test_conflicting_name_is_skipped(self, session):
        catalog = [
            {"name": "training", "category": "work"},
            {"name": "training", "category": "compliance"},
            {"name": "shift", "category": "elsewhere"},
        ]
        created = await registry.seed_event_types(session, catalog)
        assert [t.name for t in created] == ["training"]
        assert (await registry.resolve(session, "training")).category == "work"
        assert (await registry.resolve(session, "shift")).category == "work"
