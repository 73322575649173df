from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from .config import settings
from .database import engine, Base, SessionLocal
from .routers import auth, customers, inventory, orders, price_groups, templates

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("framing")

# Create tables (handles new tables but won't add columns to existing ones)
Base.metadata.create_all(bind=engine)

app = FastAPI(
    title="Framing Back Office",
    description="Customers, inventory and frame-order pricing for a picture-framing shop",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router, prefix="/api")
app.include_router(customers.router, prefix="/api")
app.include_router(inventory.router, prefix="/api")
app.include_router(orders.router, prefix="/api")
app.include_router(price_groups.router, prefix="/api")
app.include_router(templates.router, prefix="/api")


@app.get("/health")
def health():
    return {"status": "ok", "app": "framing-backoffice"}


@app.on_event("startup")
def auto_seed():
    """Seed the starter inventory catalog on first run."""
    db = SessionLocal()
    try:
        added = inventory.seed_default_items(db)
        if added:
            logger.info("Seeded %d inventory items", added)
    finally:
        db.close()
