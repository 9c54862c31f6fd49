import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from utils.config import CORS_ORIGINS, LOG_LEVEL
from utils.logger import setup_logging

setup_logging(LOG_LEVEL)
logger = logging.getLogger("roomfinder")

app = FastAPI(
    title="RoomFinder API",
    description="Student housing roommate matching API.",
    version="1.0.0",
    openapi_tags=[
        {"name": "Users", "description": "Accounts, profiles and preferences"},
        {"name": "Match", "description": "Roommate matching endpoints"},
    ],
)

# ------------------ CORS ------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ------------------ MongoDB Check ------------------
from db.mongo import check_connection, ensure_indexes

@app.on_event("startup")
def startup_db_check():
    if check_connection():
        logger.info("MongoDB connected successfully")
        ensure_indexes()
    else:
        logger.error("Failed to connect to MongoDB")


@app.get("/health")
def health():
    return {"status": "OK", "message": "Server is running"}

# ------------------ Routers ------------------
from routes.users.routes import router as users_router
from routes.roommates.routes import router as roommates_router

app.include_router(users_router)
app.include_router(roommates_router)
