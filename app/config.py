from __future__ import annotations

import os
from pathlib import Path
from typing import ClassVar

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic_settings.sources import PydanticBaseSettingsSource, YamlConfigSettingsSource

from domain.models import DEFAULT_DROP, GRID_SIZE, MIN_DROP, Size
from domain.services.interaction import InteractionConfig
from domain.services.render_genogram_to_excalidraw import RenderConfig
from domain.services.viewport import ZoomConfig

DEFAULT_CONFIG_PATH = Path("config/genogram.yaml")


class EditorSettings(BaseModel):
    grid_size: float = Field(default=GRID_SIZE, gt=0)
    default_drop: float = DEFAULT_DROP
    min_drop: float = MIN_DROP
    zoom_in_factor: float = Field(default=0.9, gt=0)
    zoom_out_factor: float = Field(default=1.1, gt=0)
    screen_width: float = Field(default=1200.0, gt=0)
    screen_height: float = Field(default=800.0, gt=0)
    person_hit_radius: float = 20.0
    relationship_hit_threshold: float = 5.0
    node_size: float = 40.0
    overlay_spacing: float = 8.0
    overlay_size: float = 12.0

    @field_validator("default_drop", mode="after")
    @classmethod
    def ensure_positive_drop(cls, value: float) -> float:
        if value <= 0:
            msg = "editor.default_drop must be positive"
            raise ValueError(msg)
        return value

    def screen_size(self) -> Size:
        return Size(self.screen_width, self.screen_height)

    def to_interaction_config(self) -> InteractionConfig:
        return InteractionConfig(
            grid_size=self.grid_size,
            default_drop=self.default_drop,
            min_drop=self.min_drop,
            person_hit_radius=self.person_hit_radius,
            relationship_hit_threshold=self.relationship_hit_threshold,
        )

    def to_render_config(self) -> RenderConfig:
        return RenderConfig(
            grid_size=self.grid_size,
            node_size=self.node_size,
            overlay_spacing=self.overlay_spacing,
            overlay_size=self.overlay_size,
            screen=self.screen_size(),
        )

    def to_zoom_config(self) -> ZoomConfig:
        return ZoomConfig(
            zoom_in_factor=self.zoom_in_factor,
            zoom_out_factor=self.zoom_out_factor,
        )


class ExportSettings(BaseModel):
    excalidraw_base_url: str = "https://excalidraw.com/"
    output_dir: Path = Path("data/scenes")


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="GENOGRAM_", env_nested_delimiter="__")

    editor: EditorSettings = EditorSettings()
    export: ExportSettings = ExportSettings()

    _yaml_path: ClassVar[Path | None] = None

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        sources: list[PydanticBaseSettingsSource] = [
            init_settings,
            env_settings,
            dotenv_settings,
            file_secret_settings,
        ]
        if cls._yaml_path:
            sources.append(YamlConfigSettingsSource(settings_cls, yaml_file=cls._yaml_path))
        return tuple(sources)


def load_settings(config_path: Path | None = None) -> AppSettings:
    env_path = os.getenv("GENOGRAM_CONFIG_PATH")
    resolved_path: Path | None = None

    if config_path is not None:
        resolved_path = config_path
    elif env_path:
        resolved_path = Path(env_path)
    elif DEFAULT_CONFIG_PATH.exists():
        resolved_path = DEFAULT_CONFIG_PATH

    previous = AppSettings._yaml_path
    try:
        if resolved_path is not None:
            if not resolved_path.exists():
                msg = f"Config file not found: {resolved_path}"
                raise FileNotFoundError(msg)
            AppSettings._yaml_path = resolved_path
        return AppSettings()
    finally:
        AppSettings._yaml_path = previous
