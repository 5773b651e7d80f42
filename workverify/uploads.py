from __future__ import annotations
import os
import shutil
import time
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Iterator, List, Optional, Tuple

from .logger import log_event


@dataclass
class StoredImage:
    path: Path
    filename: str
    content_type: Optional[str]


def unique_name(filename: Optional[str]) -> str:
    """<time_ns>-<random>-<basename>, so concurrent uploads of the same file never share a path."""
    base = os.path.basename((filename or "").replace("\\", "/")) or "upload"
    return f"{time.time_ns()}-{uuid.uuid4().hex[:12]}-{base}"


def _persist(upload_dir: Path, filename: Optional[str], content_type: Optional[str], src: BinaryIO) -> StoredImage:
    path = upload_dir / unique_name(filename)
    # "xb": never clobber another request's file
    dst = path.open("xb")
    try:
        with dst:
            shutil.copyfileobj(src, dst)
    except BaseException:
        path.unlink(missing_ok=True)
        raise
    return StoredImage(path=path, filename=filename or path.name, content_type=content_type)


def _remove(stored: StoredImage) -> None:
    try:
        stored.path.unlink()
    except FileNotFoundError:
        pass
    except OSError as e:
        log_event("upload_cleanup_failed", path=str(stored.path), error=str(e))


@contextmanager
def transient_images(
    upload_dir: str | os.PathLike,
    uploads: List[Tuple[Optional[str], Optional[str], BinaryIO]],
) -> Iterator[List[StoredImage]]:
    """Write each (filename, content_type, stream) to ``upload_dir`` for the
    duration of the block. Every file written is deleted on exit, whether the
    block returns, raises or is cancelled.
    """
    directory = Path(upload_dir)
    directory.mkdir(parents=True, exist_ok=True)
    stored: List[StoredImage] = []
    try:
        for filename, content_type, stream in uploads:
            stored.append(_persist(directory, filename, content_type, stream))
        yield stored
    finally:
        for s in stored:
            _remove(s)
