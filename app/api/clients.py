# app/api/clients.py
"""
Coach-authenticated client records.
"""
from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query

from app.api.deps import get_current_coach_id
from app.models.client import ClientCreate, ClientUpdate
from app.services.client_service import ClientService

router = APIRouter()

client_service = ClientService()


@router.get("")
async def list_clients(
    q: Optional[str] = Query(default=None),
    coach_id: str = Depends(get_current_coach_id),
) -> Dict[str, Any]:
    if q:
        clients = await client_service.search_clients(coach_id, q)
    else:
        clients = await client_service.list_clients(coach_id)
    return {"ok": True, "clients": [c.to_api() for c in clients]}


@router.post("", status_code=201)
async def create_client(body: ClientCreate, coach_id: str = Depends(get_current_coach_id)) -> Dict[str, Any]:
    client = await client_service.create_client(coach_id, body)
    return {"ok": True, "client": client.to_api()}


@router.get("/{client_id}")
async def get_client(client_id: str, coach_id: str = Depends(get_current_coach_id)) -> Dict[str, Any]:
    client = await client_service.get_client(client_id, coach_id)
    return {"ok": True, "client": client.to_api()}


@router.patch("/{client_id}")
async def update_client(
    client_id: str, body: ClientUpdate, coach_id: str = Depends(get_current_coach_id)
) -> Dict[str, Any]:
    client = await client_service.update_client(client_id, coach_id, body)
    return {"ok": True, "client": client.to_api()}


@router.delete("/{client_id}")
async def delete_client(client_id: str, coach_id: str = Depends(get_current_coach_id)) -> Dict[str, Any]:
    await client_service.delete_client(client_id, coach_id)
    return {"ok": True}
