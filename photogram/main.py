from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from photogram.api import auth, chats, messages, photos, users
from photogram.api.errors import register_exception_handlers
from photogram.config_secrets import CORS_ORIGINS
from photogram.core.cache import close_cache, init_cache
from photogram.core.db import close_db, init_db

API_VERSION = "0.1.0"

app = FastAPI(
    title="Photogram API",
    description="Photo sharing with a follow graph and chats",
    version=API_VERSION,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

for module in (auth, users, chats, messages, photos):
    app.include_router(module.router)


@app.on_event("startup")
async def open_connections():
    """The pool and the Redis client live on app.state for the dependencies."""
    app.state.pool = await init_db()
    app.state.redis = await init_cache()


@app.on_event("shutdown")
async def close_connections():
    await close_db(getattr(app.state, "pool", None))
    await close_cache(getattr(app.state, "redis", None))


@app.get("/health")
async def health_check():
    return {"status": "healthy"}


@app.get("/api/version")
async def api_version():
    return {"version": API_VERSION, "name": app.title, "endpoints": "/api/v1"}
