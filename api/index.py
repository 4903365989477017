"""Serverless entrypoint; `vercel.json` routes the signing endpoint here."""

import logging
import os

from signing.app import app

logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())

__all__ = ["app"]
