"""Catalog services for relay."""

from .catalog import Catalog
from .settings import SettingsStore

__all__ = ["Catalog", "SettingsStore"]
