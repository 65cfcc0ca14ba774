"""Text adapter turning pasted "label - meaning" lines into batch imports."""

from __future__ import annotations

import re
from typing import List, Tuple

from .calls import normalize_label

_SEPARATOR = re.compile(r"\s*[-–—]\s*")


def parse_batch_line(line: str) -> Tuple[str, str] | None:
    stripped = line.strip()
    if not stripped:
        return None
    parts = [part for part in _SEPARATOR.split(stripped, maxsplit=1) if part]
    if not parts:
        return None
    label = normalize_label(parts[0])
    meaning = parts[1].strip() if len(parts) > 1 else ""
    return label, meaning


def parse_batch(text: str) -> List[Tuple[str, str]]:
    """One (label, meaning) pair per non-blank line, split on the first dash."""
    pairs: List[Tuple[str, str]] = []
    for line in text.splitlines():
        parsed = parse_batch_line(line)
        if parsed is not None:
            pairs.append(parsed)
    return pairs
