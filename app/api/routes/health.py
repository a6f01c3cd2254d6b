from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.core.logging import get_logger
from app.db import get_db
from app.repositories.students import ping

router = APIRouter(tags=["ops"])


@router.get("/health")
@router.get("/healthz", include_in_schema=False)
def health(db: Session = Depends(get_db)):
    get_logger().info("health.check")
    if ping(db):
        return {"status": "ok"}
    return JSONResponse({"status": "error"}, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)
