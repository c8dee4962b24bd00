# yieldpilot/main.py
# uvicorn yieldpilot.main:app
from __future__ import annotations

from .entrypoints.fastapi_app import create_app

app = create_app()
