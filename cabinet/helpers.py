import json
import os
import re
from pathlib import Path
from typing import Any

_RELATIVE_RE = re.compile(r"^\.\.?(?:/|\\|$)")
_TRAILING_COMMA_RE = re.compile(r",(\s*[}\]])")


def is_relative_path(partial: str) -> bool:
    """True for ``./x``, ``../x``, ``.`` and ``..``."""
    return bool(_RELATIVE_RE.match(partial))


def strip_loader(partial: str) -> str:
    """
    Drop webpack/RequireJS loader prefixes.

    ``"style!css!./foo.css"`` becomes ``"./foo.css"``.
    """
    return partial.rsplit("!", 1)[-1]


def strip_json_comments(text: str) -> str:
    """
    Remove ``//`` and ``/* */`` comments and trailing commas from JSON text.

    String literals are left untouched, so ``"http://x"`` survives.
    """
    out: list[str] = []
    i, n = 0, len(text)
    while i < n:
        ch = text[i]
        if ch == '"':
            j = i + 1
            while j < n and text[j] != '"':
                j += 2 if text[j] == "\\" else 1
            out.append(text[i:j + 1])
            i = j + 1
        elif text.startswith("//", i):
            j = text.find("\n", i)
            i = n if j == -1 else j
        elif text.startswith("/*", i):
            j = text.find("*/", i + 2)
            i = n if j == -1 else j + 2
        else:
            out.append(ch)
            i += 1
    return _remove_trailing_commas("".join(out))


def _remove_trailing_commas(text: str) -> str:
    # Only touch commas outside of string literals.
    parts = re.split(r'("(?:\\.|[^"\\])*")', text)
    for idx in range(0, len(parts), 2):
        parts[idx] = _TRAILING_COMMA_RE.sub(r"\1", parts[idx])
    return "".join(parts)


def parse_jsonc(text: str) -> Any:
    """Parse JSON that may contain comments and trailing commas (tsconfig style)."""
    return json.loads(strip_json_comments(text.lstrip("\ufeff")))


def read_jsonc(path: str | Path) -> Any:
    with open(path, "r", encoding="utf-8") as f:
        return parse_jsonc(f.read())


def is_file(path: str) -> bool:
    return os.path.isfile(path)


def is_dir(path: str) -> bool:
    return os.path.isdir(path)
