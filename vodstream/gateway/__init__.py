"""Catalog and progress collaborators."""

from .abc import AbstractCatalogGateway, AbstractProgressGateway
from .http import HttpCatalogGateway, HttpProgressGateway, DEFAULT_BASE_URL
from .memory import InMemoryCatalog, InMemoryProgressStore

__all__ = [
    'AbstractCatalogGateway',
    'AbstractProgressGateway',
    'HttpCatalogGateway',
    'HttpProgressGateway',
    'DEFAULT_BASE_URL',
    'InMemoryCatalog',
    'InMemoryProgressStore',
]
