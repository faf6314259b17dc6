"""Service health route."""

from __future__ import annotations

from fastapi import APIRouter

router = APIRouter(tags=["system"])


@router.get("/api/health")
def health():
    return {"status": "OK", "message": "API is running"}
