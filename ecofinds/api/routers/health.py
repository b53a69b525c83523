# ecofinds/api/routers/health.py
import redis
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ecofinds.data.database import get_db
from ecofinds.utils.logging import get_logger
from ecofinds.utils.retry import redis_retry
from ecofinds.utils.settings import CELERY_BROKER_URL

logger = get_logger(__name__)

router = APIRouter(tags=["health"])


@redis_retry()
def ping_broker() -> bool:
    client = redis.Redis.from_url(CELERY_BROKER_URL, socket_timeout=1)
    return bool(client.ping())


@router.get("/health")
def health(db: Session = Depends(get_db)):
    try:
        db.execute(text("SELECT 1"))
        database = "ok"
    except SQLAlchemyError as e:
        logger.error(f"Health check: database unavailable: {e}")
        database = "unavailable"

    try:
        broker = "ok" if ping_broker() else "unavailable"
    except redis.RedisError as e:
        # notifications degrade, orders still work
        logger.warning(f"Health check: broker unavailable: {e}")
        broker = "unavailable"

    body = {
        "status": "ok" if database == "ok" else "degraded",
        "database": database,
        "broker": broker,
    }
    return JSONResponse(status_code=200 if database == "ok" else 503, content=body)
