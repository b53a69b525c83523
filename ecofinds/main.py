# ecofinds/main.py
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from ecofinds.api import create_app
from ecofinds.data.database import Base, engine, init_db
from ecofinds.utils.logging import get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Initializing database")
    try:
        init_db(engine)
    except Exception as e:
        logger.error(f"Failed to create tables: {e}")
        raise
    logger.info(f"Tables ready: {list(Base.metadata.tables.keys())}")
    yield


app = create_app(lifespan=lifespan)

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
