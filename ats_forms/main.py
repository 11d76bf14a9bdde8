import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ats_forms.api import applications, files, forms
from ats_forms.database import Base, engine
from ats_forms.models import application, form, form_field  # noqa: F401  (register tables)

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables ready")
    yield


app = FastAPI(
    title="ATS Forms Service",
    description="Dynamic application forms: builder, submissions and candidate profiles",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(forms.router, tags=["forms"])
app.include_router(applications.router, tags=["applications"])
app.include_router(files.router, tags=["files"])


@app.get("/health")
async def health_check():
    return {"status": "ok"}
