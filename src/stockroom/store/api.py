"""FastAPI application serving the ``/api/items`` contract."""
from __future__ import annotations

from typing import Sequence

from fastapi import APIRouter, Depends, FastAPI, HTTPException, status
from sqlalchemy.exc import NoResultFound
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import Settings, get_settings
from ..schemas import HealthStatus, ItemPayload, RawItem
from . import crud
from .database import get_session

router = APIRouter()


def provide_settings() -> Settings:
    """Dependency returning the active :class:`Settings` instance."""

    return get_settings()


@router.get("/health", response_model=HealthStatus, tags=["system"])
async def health_check(settings: Settings = Depends(provide_settings)) -> HealthStatus:
    return HealthStatus(environment=settings.environment)


@router.get("/api/items", response_model=list[RawItem])
async def list_items(session: AsyncSession = Depends(get_session)) -> Sequence[RawItem]:
    items = await crud.list_items(session)
    return [RawItem.model_validate(item) for item in items]


@router.post("/api/items", response_model=RawItem, status_code=status.HTTP_201_CREATED)
async def create_item(
    payload: ItemPayload, session: AsyncSession = Depends(get_session)
) -> RawItem:
    item = await crud.create_item(session, payload)
    await session.commit()
    return RawItem.model_validate(item)


@router.put("/api/items/{item_id}", response_model=RawItem)
async def update_item(
    item_id: int,
    payload: ItemPayload,
    session: AsyncSession = Depends(get_session),
) -> RawItem:
    try:
        item = await crud.get_item(session, item_id)
    except NoResultFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    item = await crud.update_item(session, item, payload)
    await session.commit()
    await session.refresh(item)
    return RawItem.model_validate(item)


@router.delete("/api/items/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_item(item_id: int, session: AsyncSession = Depends(get_session)) -> None:
    try:
        item = await crud.get_item(session, item_id)
    except NoResultFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    await crud.delete_item(session, item)
    await session.commit()


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    app = FastAPI(title=settings.app_name)
    app.dependency_overrides[provide_settings] = lambda: settings
    app.include_router(router)
    return app


app = create_app()


__all__ = ["app", "create_app"]
