"""Podnav - FastAPI Application."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from podnav.config import settings
from podnav.routers import podcasts, segments, sessions


logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)

# Create app
app = FastAPI(
    title=settings.app_name,
    description="Topic-first podcast navigation - play an episode by topic, not by timeline",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    debug=settings.debug,
)

# CORS middleware (allow all for development)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(segments.router)
app.include_router(podcasts.router)
app.include_router(sessions.router)


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "name": settings.app_name,
        "version": "0.1.0",
        "description": "Topic-first podcast navigation",
        "docs": "/docs",
        "endpoints": {
            "segment": "/segment - Break a transcript into topic segments",
            "podcasts": "/podcasts - Search podcasts and list episodes",
            "sessions": "/sessions - Pick topics of an episode and play them in order",
        }
    }


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=3001)
