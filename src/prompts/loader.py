from __future__ import annotations

from functools import lru_cache
from pathlib import Path

PROMPT_DIR = Path(__file__).resolve().parent


@lru_cache(maxsize=8)
def load_prompt(filename: str) -> str:
    """Load a prompt shipped with the codebase, or from an absolute path."""

    path = Path(filename)
    if not path.is_absolute():
        path = PROMPT_DIR / path
    if not path.is_file():
        raise RuntimeError(f"Prompt file not found: {filename}")
    text = path.read_text(encoding="utf-8").strip()
    if not text:
        raise RuntimeError(f"Prompt file is empty: {filename}")
    return text
