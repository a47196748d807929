"""
Atomic file writes (temp file in the target directory, then rename)
"""

import os
import tempfile
from pathlib import Path
from typing import Callable, Union


def atomic_write(path: Union[str, Path], write: Callable[[str], None], suffix: str = ".tmp") -> Path:
    """
    Write a file so readers see either the old content or the new, never a
    partial file.

    ``write`` receives the temp file name and must fully write it.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with tempfile.NamedTemporaryFile(
        mode="w", dir=path.parent, prefix=f".{path.name}.", suffix=suffix, delete=False
    ) as tmp_file:
        tmp_name = tmp_file.name

    try:
        write(tmp_name)
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise

    return path


def atomic_write_text(path: Union[str, Path], content: str, encoding: str = "utf-8") -> Path:
    return atomic_write(path, lambda name: Path(name).write_text(content, encoding=encoding))
