"""
FastAPI application entry point.

Run with: uvicorn api.main:app --reload
"""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from backend/.env (optional) before other imports that read env
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(env_path)

from api.routes import cafes

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

# Create app
app = FastAPI(
    title="Cafe Finder API",
    description="Find, enrich and rank cafés around a location",
    version="0.1.0",
)

# CORS middleware for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure properly for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(cafes.router, prefix="/cafes", tags=["cafes"])


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "Cafe Finder API"}


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}
