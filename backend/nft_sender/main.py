import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from tortoise.contrib.fastapi import register_tortoise

from nft_sender.api import dashboard_router, functions, health
from nft_sender.blockchain import chain_registry
from nft_sender.core.config import settings
from nft_sender.services.state import boards

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup/shutdown events."""
    chains = ", ".join(c.value for c in chain_registry.get_supported_chains())
    logger.info(f"Starting {settings.app_name} against {settings.crossmint_api_url} (chains: {chains})")
    yield
    # In-memory dashboard state does not outlive the process
    boards.clear()
    logger.info("Shutdown complete")


app = FastAPI(
    title=settings.app_name,
    description="""
    NFT Sender API - bulk NFT distribution through Crossmint

    This API provides endpoints for:
    - Managing projects (Crossmint API key, template/collection, target chain)
    - Loading recipients (emails or wallet addresses) from text or spreadsheets
    - Minting to pending recipients in concurrent batches, retrying failures
    - Validating templates and reporting which wallets their chain accepts

    ## Minting Flow

    1. Dashboard creates a project with `POST /api/v1/projects`
    2. Recipients are added with `POST /api/v1/projects/{id}/recipients` and stored as pending
    3. `POST /api/v1/projects/{id}/mint` mints the selected records, 5 at a time
    4. Each mint goes through `POST /functions/crossmint-nft`'s handler, which formats
       the recipient for the chain and calls Crossmint
    5. Records end up minted or failed; failed ones can be retried
    """,
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(health.router)
app.include_router(functions.router)
app.include_router(dashboard_router.router, prefix=settings.api_v1_prefix)


@app.get("/", tags=["root"])
async def root():
    """Root endpoint with API information."""
    return {
        "name": settings.app_name,
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health",
        "api": f"{settings.api_v1_prefix}/projects",
        "functions": ["/functions/crossmint-nft", "/functions/validate-template"],
    }


# Register Tortoise ORM with FastAPI
register_tortoise(
    app,
    config=settings.tortoise_config,
    generate_schemas=False,
    add_exception_handlers=True,
)
