from __future__ import annotations

from pathlib import Path
from typing import Any

import orjson
from filelock import FileLock

from domain.errors import MalformedDocumentError


def read_json_document(path: Path) -> Any:
    try:
        return orjson.loads(path.read_bytes())
    except orjson.JSONDecodeError as exc:
        msg = f"{path} is not valid JSON: {exc.msg} (line {exc.lineno})"
        raise MalformedDocumentError(msg) from exc


def encode_json(payload: Any) -> bytes:
    return orjson.dumps(payload, option=orjson.OPT_INDENT_2 | orjson.OPT_APPEND_NEWLINE)


def write_json_locked(path: Path, payload: Any) -> None:
    """Replaces ``path`` through a sibling ``.tmp`` file while holding ``<path>.lock``."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with FileLock(str(path.with_suffix(f"{path.suffix}.lock"))):
        staging = path.with_suffix(f"{path.suffix}.tmp")
        staging.write_bytes(encode_json(payload))
        staging.replace(path)
