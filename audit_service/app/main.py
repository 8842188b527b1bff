# app/main.py
from datetime import datetime, timezone
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shared.core.config import settings
from shared.core.database import Base, database_status, engine
from shared.core.logging_config import setup_logging
from shared.helpers.exception_handler import setup_exception_handlers
from shared.wrappers.response_wrapper import JsonResponseMiddleware
from shared.models import users
from .models import inventory_entries, reference_inventory
from .router import admin_router, inventory_router

setup_logging()

# Create tables
Base.metadata.create_all(bind=engine)

app = FastAPI(title="Inventory Audit Service")

# 1️⃣ CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 2️⃣ Custom JSON response wrapper middleware
app.add_middleware(JsonResponseMiddleware)

# Register exception handlers
setup_exception_handlers(app)

# Routers
app.include_router(inventory_router.router)
app.include_router(admin_router.router)


@app.get("/api/health")
def health():
    return {
        "status": "ok",
        "database": database_status(),
        "timestamp": datetime.now(timezone.utc),
    }
