from __future__ import annotations

import logging
import os
import shutil
import stat
import tempfile
from pathlib import Path

logger = logging.getLogger(__name__)


def _same_file(src: Path, dst: Path, mode: int) -> bool:
    if not dst.is_file():
        return False
    if stat.S_IMODE(dst.stat().st_mode) != mode:
        return False
    if src.stat().st_size != dst.stat().st_size:
        return False
    return src.read_bytes() == dst.read_bytes()


def install_file(src: Path, dst: Path, mode: int, *, dry_run: bool = False) -> str:
    """Copy ``src`` to ``dst`` with ``mode``, like ``install -m``.

    The copy goes through a temporary file in the target directory and is
    renamed into place, so readers never observe a half-written file.
    Returns "unchanged", "installed" or "overwrote".
    """

    existed = dst.exists()
    if _same_file(src, dst, mode):
        return "unchanged"

    action = "overwrote" if existed else "installed"
    if dry_run:
        logger.info("Would install %s -> %s (mode %o)", src, dst, mode)
        return action

    dst.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(prefix=f".{dst.name}.", dir=str(dst.parent))
    try:
        with os.fdopen(fd, "wb") as out, src.open("rb") as inp:
            shutil.copyfileobj(inp, out)
        os.chmod(tmp, mode)
        os.replace(tmp, dst)
    except BaseException:
        if os.path.exists(tmp):
            os.unlink(tmp)
        raise
    return action


def remove_file(path: Path, *, dry_run: bool = False) -> bool:
    """Remove a file; an already-absent file is not an error.

    Returns True if something was removed.
    """

    if not path.exists() and not path.is_symlink():
        return False
    if dry_run:
        logger.info("Would remove %s", path)
        return True
    try:
        path.unlink()
    except FileNotFoundError:
        return False
    return True
