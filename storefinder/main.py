from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from storefinder import __version__
from storefinder.api.routes import geocode, stores
from storefinder.config import get_settings
from storefinder.finder.geocoder import Geocoder
from storefinder.finder.query_service import StoreQueryService, build_client
from storefinder.finder.session import SessionRegistry

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info("Starting Store Finder...")
    settings = get_settings()
    client = build_client(settings)
    app.state.settings = settings
    app.state.query_service = StoreQueryService(settings, client=client)
    app.state.geocoder = Geocoder(settings, client=client)
    app.state.sessions = SessionRegistry(max_sessions=settings.max_sessions)
    yield
    # Shutdown
    logger.info("Shutting down Store Finder...")


app = FastAPI(
    title="Store Finder",
    description="Nearby franchise stores via Gemini with Google Maps grounding",
    version=__version__,
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routes
app.include_router(stores.router)
app.include_router(geocode.router)


@app.get("/")
async def root():
    return {"message": "Store Finder API", "version": __version__}


@app.get("/health")
async def health():
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run("storefinder.main:app", host="0.0.0.0", port=settings.port, reload=settings.debug)
