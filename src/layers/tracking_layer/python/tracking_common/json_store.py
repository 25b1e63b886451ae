import contextlib
import fcntl
import json
import os
import tempfile
from enum import Enum
from pathlib import Path
from typing import Any, Iterator, Optional

from loguru import logger
from pydantic import BaseModel


class LoadStatus(str, Enum):
    OK = "ok"
    MISSING = "missing"
    CORRUPT = "corrupt"


class LoadResult(BaseModel):
    status: LoadStatus
    data: Any = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status is LoadStatus.OK


class JsonDocument:
    """A JSON document on local disk, always read and rewritten in full."""

    def __init__(self, path):
        self.path = Path(path)

    def load(self) -> LoadResult:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return LoadResult(status=LoadStatus.MISSING, error=f"{self.path} not found")
        except OSError as e:
            logger.error(f"Failed to read {self.path}: {e}")
            return LoadResult(status=LoadStatus.CORRUPT, error=str(e))

        if not raw.strip():
            return LoadResult(status=LoadStatus.MISSING, error=f"{self.path} is empty")

        try:
            return LoadResult(status=LoadStatus.OK, data=json.loads(raw))
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse {self.path}: {e}")
            return LoadResult(status=LoadStatus.CORRUPT, error=str(e))

    def write(self, data: Any) -> None:
        """Atomically replaces the document: temp file in the same dir, then rename."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self.path)
        except BaseException:
            with contextlib.suppress(FileNotFoundError):
                os.unlink(tmp_name)
            raise


@contextlib.contextmanager
def file_lock(path) -> Iterator[None]:
    """Exclusive advisory lock held for a whole read-modify-write cycle."""
    lock_path = Path(path)
    lock_path.parent.mkdir(parents=True, exist_ok=True)
    with open(lock_path, "a") as handle:
        fcntl.flock(handle.fileno(), fcntl.LOCK_EX)
        try:
            yield
        finally:
            fcntl.flock(handle.fileno(), fcntl.LOCK_UN)
