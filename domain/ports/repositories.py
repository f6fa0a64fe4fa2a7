from __future__ import annotations

from pathlib import Path
from typing import Protocol

from domain.genogram import Genogram
from domain.models import ExcalidrawDocument


class GenogramRepository(Protocol):
    def load(self, path: Path) -> Genogram: ...

    def save(self, genogram: Genogram, path: Path) -> None: ...


class ExcalidrawRepository(Protocol):
    def save(self, document: ExcalidrawDocument, path: Path) -> None: ...
