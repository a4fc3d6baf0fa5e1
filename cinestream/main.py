from fastapi import FastAPI
from slowapi.errors import RateLimitExceeded

from cinestream._version import __version__
from cinestream.api.catalog import router as catalog_router
from cinestream.api.errors import register_exception_handlers
from cinestream.api.stream import router as stream_router
from cinestream.config import CORS_ALLOW_CREDENTIALS, CORS_ORIGINS
from cinestream.core.lifespan import lifespan
from cinestream.cors import apply_cors_middleware
from cinestream.rate_limit import limiter, rate_limit_exceeded_handler

app = FastAPI(title="cinestream", version=__version__, lifespan=lifespan)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
register_exception_handlers(app)
apply_cors_middleware(app, origins=CORS_ORIGINS, allow_credentials=CORS_ALLOW_CREDENTIALS)

app.include_router(stream_router)  # proxy + resolve
app.include_router(catalog_router)  # read-only catalogue


# Healthcheck endpoint for monitoring
@app.get("/health")
async def healthcheck():
    return {"status": "ok"}
