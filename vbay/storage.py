"""
Key/value storage backends.

Both backends expose the same three calls the browser's ``localStorage``
offers. Values are opaque strings; serialization happens in
``vbay.persistence``.
"""
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from vbay.errors import StorageWriteError
from vbay.log import get_logger

logger = get_logger(__name__)


class Storage(ABC):
    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``. Raises StorageWriteError on failure."""

    @abstractmethod
    def remove_item(self, key: str) -> None:
        ...


class MemoryStorage(Storage):
    """Dict-backed storage with an optional byte quota across all keys."""

    def __init__(self, quota_bytes: Optional[int] = None) -> None:
        self.items: dict[str, str] = {}
        self.quota_bytes = quota_bytes

    def get_item(self, key: str) -> Optional[str]:
        return self.items.get(key)

    def set_item(self, key: str, value: str) -> None:
        if self.quota_bytes is not None:
            used = sum(len(v.encode("utf-8")) for k, v in self.items.items() if k != key)
            if used + len(value.encode("utf-8")) > self.quota_bytes:
                raise StorageWriteError(f"Quota of {self.quota_bytes} bytes exceeded writing '{key}'")
        self.items[key] = value

    def remove_item(self, key: str) -> None:
        self.items.pop(key, None)


class JsonFileStorage(Storage):
    """One ``<key>.json`` file per slot under ``directory``."""

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get_item(self, key: str) -> Optional[str]:
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Could not read %s: %s", path, exc)
            return None

    def set_item(self, key: str, value: str) -> None:
        path = self._path(key)
        tmp = path.with_suffix(".json.tmp")
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            tmp.write_text(value, encoding="utf-8")
            tmp.replace(path)
        except OSError as exc:
            raise StorageWriteError(f"Could not write {path}: {exc}") from exc

    def remove_item(self, key: str) -> None:
        try:
            self._path(key).unlink()
        except FileNotFoundError:
            pass
        except OSError as exc:
            raise StorageWriteError(f"Could not remove {self._path(key)}: {exc}") from exc
