from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import time
from sqlalchemy.exc import OperationalError

from flowsync.api.routes import router
from flowsync.config import CORS_ORIGINS, DB_CONNECT_DELAY, DB_CONNECT_RETRIES
from flowsync.db.session import engine
from flowsync.db.models import Base

app = FastAPI(
    title="FlowSync Workflow Editor",
    version="0.1.0",
)

# Middleware first, routes after
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)


@app.on_event("startup")
def startup():
    for attempt in range(DB_CONNECT_RETRIES):
        try:
            Base.metadata.create_all(bind=engine)
            print("[STARTUP] Database connected")
            return
        except OperationalError:
            print(f"[STARTUP] Waiting for database... ({attempt + 1}/{DB_CONNECT_RETRIES})")
            time.sleep(DB_CONNECT_DELAY)

    # Keep serving the stateless diagram endpoints
    print("[STARTUP] Database not ready - running without persistence")
