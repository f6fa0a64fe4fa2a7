from __future__ import annotations

import json
from typing import Any, cast

from lzstring import LZString  # type: ignore[import-untyped]

from domain.models import ExcalidrawDocument

DEFAULT_EXCALIDRAW_URL = "https://excalidraw.com/"


def compress_scene(scene: dict[str, Any]) -> str:
    payload = json.dumps(scene, ensure_ascii=True, separators=(",", ":"))
    return cast(str, LZString().compressToEncodedURIComponent(payload))


def build_share_url(document: ExcalidrawDocument, base_url: str = DEFAULT_EXCALIDRAW_URL) -> str:
    """Builds a link that opens the rendered chart in an Excalidraw instance."""
    scene = document.to_dict()
    # Excalidraw rebuilds its own view state on load.
    scene["appState"] = {
        key: value for key, value in scene["appState"].items() if key != "viewWindow"
    }
    base = base_url.split("#", 1)[0]
    return f"{base}#json={compress_scene(scene)}"
