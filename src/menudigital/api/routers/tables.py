"""Table listing with QR code links."""

from __future__ import annotations

from fastapi import APIRouter, Request

from menudigital.api.deps import get_store

router = APIRouter(prefix="/mesas", tags=["tables"])


@router.get("")
def list_tables(request: Request):
    return [t.to_dict() for t in get_store(request).list_tables()]
