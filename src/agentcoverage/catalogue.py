"""
File catalogue listing.

Walks the audited root once and returns canonical relative POSIX paths.
This is the only filesystem access on the file-tree side; the coverage
pipeline itself works on the returned list.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterable, Optional

logger = logging.getLogger(__name__)


def list_files(
    root: Path,
    include_extensions: Optional[Iterable[str]] = None,
    exclude_dirs: Optional[Iterable[str]] = None,
) -> list[str]:
    """
    List files under ``root`` as sorted relative POSIX paths.

    Args:
        root: Directory to walk
        include_extensions: Keep only files with these suffixes (None or
            empty keeps every file)
        exclude_dirs: Directory names pruned from the walk

    Returns:
        Sorted list of paths such as ``engine/content/widgets/Button/index.tsx``.
        A missing root yields an empty list.
    """
    root = Path(root)
    if not root.is_dir():
        logger.warning("Catalogue root %s does not exist; no files listed", root)
        return []

    extensions = tuple(e.lower() for e in (include_extensions or ()))
    excluded = set(exclude_dirs or ())

    files: list[str] = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if d not in excluded)
        rel_dir = Path(dirpath).relative_to(root)
        for name in filenames:
            if extensions and not name.lower().endswith(extensions):
                continue
            files.append((rel_dir / name).as_posix())

    logger.debug("Listed %d files under %s", len(files), root)
    return sorted(files)
