import os
from typing import Optional

from cabinet.helpers import is_relative_path


def resolve_dependency_path(partial: str, filename: str, directory: Optional[str] = None) -> str:
    """
    Best-effort path for *partial* without any module-system knowledge.

    Relative specifiers are taken from the file's directory, everything else
    from *directory*. The file's own extension is appended when *partial*
    has none. The file does not have to exist.
    """
    if not partial:
        return ""

    if is_relative_path(partial) or not directory:
        base = os.path.dirname(filename)
    else:
        base = directory

    resolved = os.path.join(base, partial)
    file_ext = os.path.splitext(filename)[1]
    if not os.path.splitext(resolved)[1] and file_ext:
        resolved += file_ext
    return os.path.normpath(os.path.abspath(resolved))
