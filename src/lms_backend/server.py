import logging
from contextlib import asynccontextmanager
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from lms_backend.api.access import access_router
from lms_backend.api.assignments import assignment_router
from lms_backend.api.sections import section_router
from lms_backend.api.unlocks import unlock_router
from lms_backend.database import get_engine
from lms_backend.model import Base
from lms_backend.permissions.auth import get_current_principal
from lms_backend.settings import settings

logger = logging.getLogger(__name__)


def configure_logging():
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )


def init_database():
    Base.metadata.create_all(bind=get_engine())
    logger.info("Database schema ensured")


@asynccontextmanager
async def lifespan(app: FastAPI):

    configure_logging()

    if settings.DEBUG_MODE != "production":
        init_database()

    yield

app = FastAPI(lifespan=lifespan)

origins = [
    "*"
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(
    assignment_router,
    prefix="/teacher-assignments",
    tags=["teacher assignments"],
    dependencies=[Depends(get_current_principal)]
)

app.include_router(
    section_router,
    prefix="/sections",
    tags=["sections"],
    dependencies=[Depends(get_current_principal)]
)

app.include_router(
    access_router,
    prefix="/access",
    tags=["access"],
    dependencies=[Depends(get_current_principal)]
)

app.include_router(
    unlock_router,
    prefix="/unlocks",
    tags=["unlocks"],
    dependencies=[Depends(get_current_principal)]
)


@app.get("/", tags=["status"])
def get_status_head():
    return {"status": "ok"}
