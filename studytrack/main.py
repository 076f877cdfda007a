from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import config
from .errors import StudyTrackError
from .routers import (
    achievements,
    auth,
    courses,
    dashboard,
    goals,
    streak,
)
from .store import get_store


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Open the configured store once so the first request does not pay for it
    store = get_store()
    print(f"[startup] State store ready: {type(store).__name__}")
    yield


app = FastAPI(title="StudyTrack", lifespan=lifespan)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StudyTrackError)
async def studytrack_error_handler(request: Request, exc: StudyTrackError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


app.include_router(dashboard.router)
app.include_router(courses.router)
app.include_router(goals.router)
app.include_router(streak.router)
app.include_router(achievements.router)
app.include_router(auth.router)


@app.get("/")
async def root():
    return {"message": "StudyTrack backend is running"}
