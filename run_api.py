#!/usr/bin/env python3
"""Serve the Orbit API (POST /api/agent). Usage: python run_api.py. HOST/PORT/RELOAD come from env or .env."""
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(Path(__file__).resolve().parent / ".env", override=True)

import uvicorn

from orbit.core.config import get_settings

if __name__ == "__main__":
    settings = get_settings()
    uvicorn.run("orbit.main:app", host=settings.host, port=settings.port, reload=settings.reload)
