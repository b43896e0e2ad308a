import logging

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ems.api.v1 import auth, departments, employees
from ems.core.config import settings, validate_runtime_config
from ems.core.exceptions import register_exception_handlers
from ems.db import mongodb

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="EMS API", version="1.0.0")

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Routes
app.include_router(auth.router, prefix="/api")
app.include_router(departments.router, prefix="/api")
app.include_router(employees.router, prefix="/api")


@app.on_event("startup")
async def startup_db_client():
    validate_runtime_config()
    await mongodb.connect_db()
    await mongodb.ensure_indexes(mongodb.db)


@app.on_event("shutdown")
async def shutdown_db_client():
    await mongodb.close_db()


@app.get("/")
async def root():
    return {"message": "EMS Backend running"}


def run():
    logger.info("Server running on port %s...", settings.PORT)
    uvicorn.run(app, host="0.0.0.0", port=settings.PORT)


if __name__ == "__main__":
    run()
