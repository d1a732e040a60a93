from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from subsage.utils.deps import get_db
from subsage.utils.rate_limit import rate_limit_health_info
from .service import health_db_info

router = APIRouter(prefix="/health", tags=["Health"])

@router.get("")
def health_root():
    return {"ok": True}

@router.get("/db")
def health_db(db=Depends(get_db)):
    info = health_db_info(db)
    return JSONResponse(info, status_code=200 if info["connect_ok"] else 503)

@router.get("/rate-limit")
def health_rate_limit(request: Request):
    return rate_limit_health_info(request)
