import logging

from fastapi import FastAPI

from app.api.routes import router
from app.core.config import settings
from app.core.database import Base, engine
from app.core.exceptions import EcoPointsError, domain_exception_handler, global_exception_handler

# Basic logging
logging.basicConfig(level=logging.INFO)

# Optionally create tables locally (set AUTO_CREATE_TABLES=true for dev/migrations-free environments)
if settings.AUTO_CREATE_TABLES:
    Base.metadata.create_all(bind=engine)

app = FastAPI(title="EcoRewards API")

app.add_exception_handler(EcoPointsError, domain_exception_handler)
app.add_exception_handler(Exception, global_exception_handler)

app.include_router(router)
