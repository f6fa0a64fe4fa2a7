from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

from domain.models import ExcalidrawDocument, SelectionState, ViewWindow

if TYPE_CHECKING:
    from domain.genogram import Genogram
    from domain.services.detail_form import DetailForm


class SceneRenderer(Protocol):
    def render(
        self,
        genogram: Genogram,
        selection: SelectionState,
        window: ViewWindow,
    ) -> ExcalidrawDocument: ...


class DetailPanel(Protocol):
    def show(self, form: DetailForm) -> None: ...
