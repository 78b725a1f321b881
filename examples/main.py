"""Example serving the three handler strategies with a custom delay.

Run with:
    uvicorn main:app --reload

Then compare, from two terminals at once:
    curl localhost:8000/unsafe/alice/3000
    curl localhost:8000/unsafe/bob/3000

Available endpoints:
    GET /health
    GET /unsafe/{id}[/{timeout_ms}]
    GET /safe-prototype/{id}[/{timeout_ms}]
    GET /safe-singleton/{id}[/{timeout_ms}]

Add ?extended=true (or send Accept: application/json) for the full record.
"""

import logging

from fastapi_handler_scopes import create_app
from fastapi_handler_scopes.config import Settings

logging.basicConfig(level=logging.INFO)

app = create_app(Settings(default_delay_ms=3000))
