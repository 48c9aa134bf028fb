"""Command line tokenizer for ocacli."""

from __future__ import annotations

import re
from typing import List

_TOKEN_RE = re.compile(r'"([^"]*)"|([^\s"]+)')


def tokenize_command(line: str) -> List[str]:
    """Split *line* on whitespace; a double-quoted run is one token without its quotes."""
    if not line:
        return []
    tokens: List[str] = []
    for match in _TOKEN_RE.finditer(line):
        quoted, bare = match.groups()
        tokens.append(quoted if quoted is not None else bare)
    return tokens


__all__ = ["tokenize_command"]
