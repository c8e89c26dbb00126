# app/services/profanity.py
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Iterable, List

logger = logging.getLogger(__name__)


class UsernameFilter:
    """Case-insensitive substring match against a word list."""

    def __init__(self, words: Iterable[str] = ()):
        self.words: List[str] = [w.lower() for w in words if isinstance(w, str) and w.strip()]

    @classmethod
    def from_file(cls, path: str) -> "UsernameFilter":
        try:
            data = json.loads(Path(path).read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Could not load word list from %s: %s", path, e)
            return cls()
        words = data if isinstance(data, list) else []
        logger.info("Loaded %d inappropriate words", len(words))
        return cls(words)

    def is_appropriate(self, name: str) -> bool:
        lowered = name.lower()
        return not any(w in lowered for w in self.words)
