"""Furfolio IO - audited bulk CSV import/export for grooming business data."""

from .cli import app
from .config import FurfolioIOConfig, load_config
from .services import FurfolioIO

__version__ = "0.1.0"
__all__ = ["app", "FurfolioIO", "FurfolioIOConfig", "load_config"]
