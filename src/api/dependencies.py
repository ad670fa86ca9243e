"""Shared FastAPI dependency injection."""

from __future__ import annotations

from src.config import Settings, get_settings
from src.openalex.client import OpenAlexClient
from src.services.graph_service import GraphService
from src.services.openalex_service import OpenAlexService
from src.services.panel_service import PanelService

_settings: Settings | None = None
_openalex: OpenAlexService | None = None
_graph_service: GraphService | None = None
_panel_service: PanelService | None = None


def set_services(settings: Settings, client: OpenAlexClient) -> None:
    global _settings, _openalex, _graph_service, _panel_service
    _settings = settings
    _openalex = OpenAlexService(client)
    _graph_service = GraphService(_openalex, settings)
    _panel_service = PanelService(_openalex)


def get_app_settings() -> Settings:
    if _settings is None:
        return get_settings()
    return _settings


def get_openalex() -> OpenAlexService:
    if _openalex is None:
        raise RuntimeError("OpenAlex service not initialized")
    return _openalex


def get_graph_service() -> GraphService:
    if _graph_service is None:
        raise RuntimeError("Graph service not initialized")
    return _graph_service


def get_panel_service() -> PanelService:
    if _panel_service is None:
        raise RuntimeError("Panel service not initialized")
    return _panel_service
