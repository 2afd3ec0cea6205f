"""
Static data shipped with termsetup.

``zshrc`` is the configuration file written by the ``zshrc`` step.
It is read once per process and cached.
"""

from __future__ import annotations

import hashlib
from functools import lru_cache
from pathlib import Path

_DATA_DIR = Path(__file__).parent

ZSHRC_TEMPLATE = "zshrc"


@lru_cache(maxsize=None)
def load_zshrc_template() -> str:
    """Content of the managed ``~/.zshrc``."""
    return (_DATA_DIR / ZSHRC_TEMPLATE).read_text(encoding="utf-8")


def zshrc_digest() -> str:
    """SHA-256 of the template, used to tell whether ~/.zshrc is current."""
    return hashlib.sha256(load_zshrc_template().encode("utf-8")).hexdigest()
