# backend/stockpulse/routers/__init__.py
"""
Router modules for API endpoints
"""

from . import stocks
from . import chat
from . import tickers
from . import ingest
