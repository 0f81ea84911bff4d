# app/api/auth.py
"""
Coach sign-up, login and profile endpoints.
"""
from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends

from app.api import deps
from app.api.deps import get_current_coach_id
from app.models.coach import LoginRequest, SignUpRequest
from app.services.errors import NotFoundError

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/signup", status_code=201)
async def signup(body: SignUpRequest) -> Dict[str, Any]:
    coach = await deps.auth_service.sign_up(body.email, body.password, body.name)
    return {"ok": True, "coach": coach.to_api()}


@router.post("/login")
async def login(body: LoginRequest) -> Dict[str, Any]:
    session = await deps.auth_service.sign_in(body.email, body.password)
    return {"ok": True, **session.to_api()}


@router.get("/me")
async def me(coach_id: str = Depends(get_current_coach_id)) -> Dict[str, Any]:
    coach = await deps.auth_service.get_coach_profile(coach_id)
    if coach is None:
        raise NotFoundError("Coach profile not found")
    return {"ok": True, "coach": coach.to_api()}
