from __future__ import annotations

from adapters.excalidraw.repository import FileSystemExcalidrawRepository
from adapters.filesystem.genogram_repository import FileSystemGenogramRepository
from app.config import AppSettings
from domain.genogram import Genogram
from domain.ports.rendering import DetailPanel
from domain.ports.repositories import ExcalidrawRepository, GenogramRepository
from domain.services.interaction import InteractionController
from domain.services.render_genogram_to_excalidraw import GenogramToExcalidrawRenderer
from domain.services.viewport import Viewport


def build_renderer(settings: AppSettings) -> GenogramToExcalidrawRenderer:
    return GenogramToExcalidrawRenderer(settings.editor.to_render_config())


def build_genogram_repository(settings: AppSettings) -> GenogramRepository:
    return FileSystemGenogramRepository()


def build_scene_repository(settings: AppSettings) -> ExcalidrawRepository:
    return FileSystemExcalidrawRepository()


def build_controller(
    settings: AppSettings,
    genogram: Genogram | None = None,
    detail_panel: DetailPanel | None = None,
) -> InteractionController:
    editor = settings.editor
    viewport = Viewport(screen=editor.screen_size(), config=editor.to_zoom_config())
    return InteractionController(
        genogram if genogram is not None else Genogram(),
        viewport,
        renderer=build_renderer(settings),
        detail_panel=detail_panel,
        config=editor.to_interaction_config(),
    )
