from __future__ import annotations

import os
from collections.abc import Generator

import pytest


def _clear_genogram_env() -> None:
    for key in list(os.environ):
        if key.startswith("GENOGRAM_"):
            os.environ.pop(key, None)


_clear_genogram_env()


@pytest.fixture(autouse=True)
def clear_genogram_env() -> Generator[None, None, None]:
    _clear_genogram_env()
    yield
    _clear_genogram_env()
