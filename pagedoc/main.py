from contextlib import asynccontextmanager

from fastapi import FastAPI

from pagedoc.api import extract
from pagedoc.config import get_settings
from pagedoc.services.coordinator import Coordinator
from pagedoc.services.patterns.registry import PatternRegistry
from pagedoc.services.patterns.state import DomainStateStore
from pagedoc.services.retrieval.browser import build_browser_adapter


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: load pattern packs and domain state, wire the coordinator
    settings = get_settings()
    registry = PatternRegistry(settings.patterns_dir, DomainStateStore(settings.state_path))
    registry.load_packs()
    app.state.coordinator = Coordinator(registry, build_browser_adapter(settings), settings=settings)
    yield
    # Shutdown: release the browser if one was launched
    await app.state.coordinator.close()


app = FastAPI(
    title="PageDoc API",
    description="Structured, deterministic document extraction",
    version="0.2.0",
    lifespan=lifespan,
)

app.include_router(extract.router, tags=["extract"])


@app.get("/health")
async def health_check():
    return {"status": "healthy"}
