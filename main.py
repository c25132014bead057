from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging

import models  # noqa: F401  註冊所有 table
from database import Base, engine, SessionLocal, get_settings
from api import registry, cars, owners, events
from core.access_control import AccessControlManager

settings = get_settings()
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: 建立資料表並初始化 Registry（相當於部署合約）
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        AccessControlManager.initialize(db, settings.owner_address, settings.dev_address)
    finally:
        db.close()
    yield


app = FastAPI(
    title="Car Registry API",
    description="Collectible car token ledger with minting, transfers and races",
    version="1.0.0",
    lifespan=lifespan
)

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure this properly in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(registry.router)
app.include_router(cars.router)
app.include_router(owners.router)
app.include_router(events.router)


@app.get("/")
def root():
    return {"message": "Car Registry API", "status": "ok"}


@app.get("/health")
def health():
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
