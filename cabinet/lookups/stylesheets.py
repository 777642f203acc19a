"""
Import resolution for stylesheet languages.

SASS, SCSS and LESS share one lookup: ``@import "bar"`` from ``foo.scss``
finds ``bar.scss`` or the ``_bar.scss`` partial, next to the importing file
first and under the project directory second. Stylus has its own.
"""

import os
from typing import Iterable, List, Optional

from cabinet.helpers import is_file

_SASS_SIBLINGS = {".scss": (".scss", ".sass", ".css"), ".sass": (".sass", ".scss", ".css")}


def _search_dirs(filename: str, directory: Optional[str]) -> List[str]:
    dirs = [os.path.dirname(os.path.abspath(filename))]
    if directory:
        dirs.append(os.path.abspath(directory))
    return list(dict.fromkeys(dirs))


def _first_file(candidates: Iterable[str]) -> str:
    for candidate in candidates:
        if is_file(candidate):
            return os.path.normpath(candidate)
    return ""


def _sass_names(partial: str, extensions: Iterable[str]) -> List[str]:
    head, tail = os.path.split(partial)
    names: List[str] = []
    for ext in extensions:
        names.append(os.path.join(head, tail + ext))
        names.append(os.path.join(head, "_" + tail + ext))
    for ext in extensions:
        names.append(os.path.join(partial, "index" + ext))
        names.append(os.path.join(partial, "_index" + ext))
    return names


def sass_lookup(partial: str, filename: str, directory: Optional[str] = None) -> str:
    """Resolve a sass/scss/less import to an absolute path, or ``""``."""
    if not partial:
        return ""

    file_ext = os.path.splitext(filename)[1]
    partial = partial.strip("'\"")
    if partial.startswith("~"):
        partial = partial[1:]

    partial_ext = os.path.splitext(partial)[1]
    if partial_ext:
        head, tail = os.path.split(partial)
        names = [partial, os.path.join(head, "_" + tail)]
    else:
        names = _sass_names(partial, _SASS_SIBLINGS.get(file_ext, (file_ext,)))

    return _first_file(
        os.path.join(base, name)
        for base in _search_dirs(filename, directory)
        for name in names
    )


def stylus_lookup(partial: str, filename: str, directory: Optional[str] = None) -> str:
    """Resolve a stylus ``@import``/``@require`` to an absolute path, or ``""``."""
    if not partial:
        return ""

    partial = partial.strip("'\"")
    if os.path.splitext(partial)[1] in (".styl", ".css"):
        names = [partial]
    else:
        names = [partial + ".styl", os.path.join(partial, "index.styl")]

    return _first_file(
        os.path.join(base, name)
        for base in _search_dirs(filename, directory)
        for name in names
    )
