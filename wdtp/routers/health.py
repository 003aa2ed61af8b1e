# wdtp/routers/health.py
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..db import get_db, health_check

router = APIRouter(prefix="/healthz", tags=["health"])


@router.get("")
async def healthz():
    return {"status": "ok"}


@router.get("/deep")
async def healthz_deep(db: AsyncSession = Depends(get_db)):
    result = await health_check(db)
    if not result["healthy"]:
        return JSONResponse(status_code=503, content={"database": "unavailable", "error": result["error"]})
    return {"database": "connected", "latency_ms": round(result["latency_ms"], 2)}
