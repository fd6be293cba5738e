"""
Worker service layer: people who hold employments and work shifts.

Workers are entities of type ``person``; their contact details live in the
entity's ``properties``.
"""

from __future__ import annotations

from typing import Any

import structlog
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import or_, select

from app.core.database import atomic
from app.models.entity import Entity
from app.services._store import entities as entity_store
from app.services.fields import FieldErrors, is_blank, normalize_attrs
from mosaic_shared.schemas.common import EntityType

log = structlog.get_logger()

WORKER_TYPE = EntityType.PERSON.value
WORKER_FIELDS = ("name", "email", "phone", "address", "emergency_contact")


def _name_column():
    return Entity.properties["name"].as_string()


def _email_column():
    return Entity.properties["email"].as_string()


def _validate_worker(properties: dict[str, Any]) -> None:
    errors = FieldErrors()
    if is_blank(properties.get("name")):
        errors.add("name", "can't be blank")
    email = properties.get("email")
    if is_blank(email):
        errors.add("email", "can't be blank")
    elif not isinstance(email, str) or "@" not in email or " " in email:
        errors.add("email", "must have the @ sign and no spaces")
    errors.raise_if_any("Invalid worker")


def _extract(attrs: dict[str, Any]) -> dict[str, Any]:
    properties = dict(attrs.get("properties") or {})
    for key in WORKER_FIELDS:
        if key in attrs:
            properties[key] = attrs[key]
    return properties


async def create_worker(session: AsyncSession, attrs: Any) -> Entity:
    properties = _extract(normalize_attrs(attrs))
    _validate_worker(properties)
    async with atomic(session):
        worker = await entity_store.create_entity(
            session, {"entity_type": WORKER_TYPE, "properties": properties}
        )
    log.info("worker.created", worker_id=str(worker.id))
    return worker


async def get_worker(session: AsyncSession, worker_id: Any) -> Entity:
    return await entity_store.get_entity(session, worker_id, WORKER_TYPE)


async def update_worker(session: AsyncSession, worker_id: Any, attrs: Any) -> Entity:
    patch = _extract(normalize_attrs(attrs))
    async with atomic(session):
        worker = await entity_store.get_entity(session, worker_id, WORKER_TYPE)
        _validate_worker({**(worker.properties or {}), **patch})
        worker = await entity_store.update_entity(session, worker, {"properties": patch})
    log.info("worker.updated", worker_id=str(worker.id), fields=sorted(patch))
    return worker


async def delete_worker(session: AsyncSession, worker_id: Any) -> None:
    """Hard delete; the worker's participations cascade with it."""
    async with atomic(session):
        worker = await entity_store.get_entity(session, worker_id, WORKER_TYPE)
        await entity_store.delete_entity(session, worker)
    log.info("worker.deleted", worker_id=str(worker_id))


async def list_workers(session: AsyncSession) -> list[Entity]:
    result = await session.execute(
        select(Entity).where(Entity.entity_type == WORKER_TYPE).order_by(_name_column(), Entity.id)
    )
    return list(result.scalars().all())


async def search_workers(session: AsyncSession, term: str) -> list[Entity]:
    """Case-insensitive substring match on name or email."""
    pattern = f"%{term.lower()}%"
    result = await session.execute(
        select(Entity)
        .where(
            Entity.entity_type == WORKER_TYPE,
            or_(func.lower(_name_column()).like(pattern), func.lower(_email_column()).like(pattern)),
        )
        .order_by(_name_column(), Entity.id)
    )
    return list(result.scalars().all())


async def worker_exists_with_email(session: AsyncSession, email: str) -> bool:
    result = await session.execute(
        select(Entity.id)
        .where(Entity.entity_type == WORKER_TYPE, func.lower(_email_column()) == email.lower())
        .limit(1)
    )
    return result.first() is not None
