"""File helpers shared by the CSV exporter and the bundle manager."""

import os
import tempfile
from pathlib import Path


def atomic_write_text(path: Path, text: str) -> None:
    """
    Write text to ``path`` so readers never see a partial file.

    The content goes to a temporary file in the destination directory, which
    is then moved over ``path``. The directory is created if needed.

    Args:
        path: Destination file
        text: Full file content (UTF-8)

    Raises:
        OSError: If the directory, temp file or final move fails
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, temp_path = tempfile.mkstemp(suffix=path.suffix, prefix=f".{path.stem}-", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(text)
        os.replace(temp_path, path)
    except OSError:
        if os.path.exists(temp_path):
            os.unlink(temp_path)
        raise


def safe_filename(filename: str, extension: str) -> str:
    """
    Reduce a caller-supplied name to a bare file name with ``extension``.

    Directory components are dropped so the result always lands in the
    directory it is joined to.

    Args:
        filename: Requested name, possibly with directories
        extension: Required suffix including the dot (e.g. ".csv")

    Returns:
        File name ending in ``extension``
    """
    name = Path(filename.replace("\\", "/")).name
    if name in ("", ".", ".."):
        name = "export"
    if not name.lower().endswith(extension):
        name += extension
    return name
