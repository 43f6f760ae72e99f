from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.responses import RedirectResponse

from app.core.database import init_db
from app.api import catalog, config, sync, users, wallet
from app.services.scheduler import start_scheduler, stop_scheduler


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - startup and shutdown events."""
    # Startup
    await init_db()
    start_scheduler()
    yield
    # Shutdown
    stop_scheduler()


# Create FastAPI application
app = FastAPI(
    title="Fitcoin Wallet",
    description="Turns fitness activity into Fitcoin through asynchronous sync jobs",
    version=config.VERSION,
    lifespan=lifespan,
)

# Include routers
app.include_router(config.router)
app.include_router(users.router)
app.include_router(wallet.router)
app.include_router(sync.router)
app.include_router(catalog.router)


@app.get("/")
async def root():
    """Redirect root to the API docs."""
    return RedirectResponse(url="/docs")
