import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import cors_origins, log_level
from app.db import init_db
from app.api.auth import router as auth_router
from app.api.hot_seat import router as hot_seat_router
from app.api.mentorship import router as mentorship_router
from app.api.research import router as research_router
from app.api.sessions import router as sessions_router

logging.basicConfig(
    level=log_level(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

init_db()

app = FastAPI(title="Founder Voice API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
def health_check() -> dict[str, str]:
    return {"status": "ok"}


app.include_router(auth_router)
app.include_router(sessions_router)
app.include_router(hot_seat_router)
app.include_router(mentorship_router)
app.include_router(research_router)
