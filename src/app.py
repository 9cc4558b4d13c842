"""Storefront FastAPI application.

Logging and the domain are initialized at module level so uvicorn workers
share them. PROTEAN_ENV selects the config overlay in domain.toml.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

from storefront.api import create_app
from storefront.config import Settings
from storefront.domain import storefront
from storefront.utils.logging import configure_logging

configure_logging()
storefront.init()

app = create_app(Settings.from_env())
