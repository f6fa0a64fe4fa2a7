from __future__ import annotations

from pathlib import Path

from adapters.filesystem.json_utils import read_json_document, write_json_locked
from domain.genogram import Genogram
from domain.ports.repositories import GenogramRepository


class FileSystemGenogramRepository(GenogramRepository):
    def load(self, path: Path) -> Genogram:
        return Genogram.from_snapshot(read_json_document(path))

    def save(self, genogram: Genogram, path: Path) -> None:
        write_json_locked(path, genogram.to_snapshot())
