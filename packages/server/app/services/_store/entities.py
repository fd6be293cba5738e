"""Entity store: generic participants keyed by an open ``entity_type`` tag."""

from __future__ import annotations

import re
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.errors import NotFoundError
from app.models.entity import Entity
from app.services.fields import FieldErrors, as_uuid, normalize_attrs

ENTITY_TYPE_PATTERN = re.compile(r"^[a-z_]+$")


def _validate(attrs: dict[str, Any], existing: Optional[Entity]) -> dict[str, Any]:
    errors = FieldErrors()
    entity_type = attrs.get("entity_type", existing.entity_type if existing else None)
    properties = dict(existing.properties or {}) if existing else {}

    if entity_type is None or entity_type == "":
        errors.add("entity_type", "can't be blank")
    elif not isinstance(entity_type, str) or not ENTITY_TYPE_PATTERN.match(entity_type):
        errors.add("entity_type", "has invalid format")

    if "properties" in attrs:
        props = attrs["properties"] or {}
        if isinstance(props, dict) and all(isinstance(k, str) for k in props):
            # Shallow merge: keys not mentioned keep their stored value.
            properties.update(props)
        else:
            errors.add("properties", "must be a map with string keys")

    errors.raise_if_any("Invalid entity")
    return {"entity_type": entity_type, "properties": properties}


async def create_entity(session: AsyncSession, attrs: Any) -> Entity:
    values = _validate(normalize_attrs(attrs), None)
    entity = Entity(**values)
    session.add(entity)
    await session.flush()
    return entity


async def get_entity(session: AsyncSession, entity_id: Any, entity_type: Optional[str] = None) -> Entity:
    entity = await session.get(Entity, as_uuid(entity_id, "Entity"))
    if entity is None or (entity_type is not None and entity.entity_type != entity_type):
        raise NotFoundError(f"{(entity_type or 'entity').capitalize()} not found: {entity_id}")
    return entity


async def lock_entity(session: AsyncSession, entity_id: Any, entity_type: Optional[str] = None) -> Entity:
    """Load ``entity_id`` with a row lock held until the transaction ends."""
    result = await session.execute(
        select(Entity)
        .where(Entity.id == as_uuid(entity_id, "Entity"))
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    entity = result.scalar_one_or_none()
    if entity is None or (entity_type is not None and entity.entity_type != entity_type):
        raise NotFoundError(f"{(entity_type or 'entity').capitalize()} not found: {entity_id}")
    return entity


async def update_entity(session: AsyncSession, entity: Entity, attrs: Any) -> Entity:
    values = _validate(normalize_attrs(attrs), entity)
    entity.entity_type = values["entity_type"]
    entity.properties = values["properties"]
    session.add(entity)
    await session.flush()
    return entity


async def delete_entity(session: AsyncSession, entity: Entity) -> None:
    await session.delete(entity)
    await session.flush()


async def list_entities(session: AsyncSession, entity_type: Optional[str] = None) -> list[Entity]:
    stmt = select(Entity)
    if entity_type is not None:
        stmt = stmt.where(Entity.entity_type == entity_type)
    result = await session.execute(stmt.order_by(Entity.created_at, Entity.id))
    return list(result.scalars().all())