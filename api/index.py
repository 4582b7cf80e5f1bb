"""WSGI entry point for the serverless host."""

from __future__ import annotations

import logging
import sys

from unsub.app import create_app
from unsub.config import Settings

settings = Settings.from_env()  # loads .env for local development

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    stream=sys.stderr,
)

app = create_app(settings)
