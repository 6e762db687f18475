"""
FastAPI dependency providers.

Services are created once in the app lifespan and kept on `app.state`;
routes receive them through these providers so tests can override them.
"""

from fastapi import Request

from storefinder.config import Settings
from storefinder.finder.geocoder import Geocoder
from storefinder.finder.query_service import StoreQueryService
from storefinder.finder.session import SessionRegistry


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_query_service(request: Request) -> StoreQueryService:
    return request.app.state.query_service


def get_geocoder(request: Request) -> Geocoder:
    return request.app.state.geocoder


def get_sessions(request: Request) -> SessionRegistry:
    return request.app.state.sessions
