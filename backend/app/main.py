# Hoops Scheduler backend entrypoint: FastAPI app wiring.

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend.app.api import attendance
from backend.app.api import branches
from backend.app.api import coach_attendance
from backend.app.api import coaches
from backend.app.api import dashboard
from backend.app.api import login
from backend.app.api import packages
from backend.app.api import payments
from backend.app.api import sessions
from backend.app.api import students
from backend.app.core.dev_seed import ensure_default_dev_admin
from backend.app.core.logging import configure_logging
from backend.app.core.settings import get_settings
from backend.app.db import base  # noqa: F401  registers every model on Base.metadata
from backend.app.db.base_class import Base
from backend.app.db.session import SessionLocal, engine

settings = get_settings()
configure_logging(settings.log_level)

app = FastAPI(title=settings.app_name)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(login.router)
app.include_router(branches.router)
app.include_router(coaches.router)
app.include_router(packages.router)
app.include_router(students.router)
app.include_router(sessions.router)
app.include_router(attendance.router)
app.include_router(coach_attendance.router)
app.include_router(payments.router)
app.include_router(dashboard.router)


@app.get("/")
def read_root():
    return {"app": settings.app_name, "status": "ok"}


@app.get("/health")
def health_check():
    return {"status": "ok"}


@app.on_event("startup")
def prepare_database():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        ensure_default_dev_admin(db)
    finally:
        db.close()
