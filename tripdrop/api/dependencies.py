"""FastAPI dependency injection helpers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from tripdrop.config import settings
from tripdrop.domain.enums import UserRole
from tripdrop.infrastructure.database import async_session_factory
from tripdrop.infrastructure.locks import LocalLocks, RedisLocks
from tripdrop.infrastructure.redis_client import get_redis
from tripdrop.infrastructure.repositories import DeliveryRepository
from tripdrop.services.deliveries import DeliveryService

_local_locks = LocalLocks()


async def get_db() -> AsyncSession:  # type: ignore[misc]
    """Yield an async DB session; commit on success, rollback on error."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_locks():
    if settings.lock_backend == "redis":
        return RedisLocks(
            await get_redis(),
            ttl_seconds=settings.lock_ttl_seconds,
            wait_seconds=settings.lock_wait_seconds,
        )
    return _local_locks


async def get_delivery_service(
    db: AsyncSession = Depends(get_db),
    locks=Depends(get_locks),
) -> DeliveryService:
    return DeliveryService(DeliveryRepository(db), locks)


# ── Caller identity (authenticated upstream) ─────────────────────────


@dataclass(frozen=True)
class Caller:
    id: int
    role: UserRole


async def get_caller(
    x_user_id: Optional[int] = Header(None),
    x_user_role: Optional[UserRole] = Header(None),
) -> Caller:
    if x_user_id is None or x_user_role is None:
        raise HTTPException(status_code=401, detail="Missing caller identity")
    return Caller(id=x_user_id, role=x_user_role)


def require_role(role: UserRole):
    async def _caller_with_role(caller: Caller = Depends(get_caller)) -> Caller:
        if caller.role != role:
            raise HTTPException(
                status_code=403, detail=f"Only {role.value}s may do this"
            )
        return caller

    return _caller_with_role
