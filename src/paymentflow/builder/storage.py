"""
Key-value slot storage for saved workflows.

The editing engine only needs a single named slot holding a JSON string. Any
object with ``get``/``set``/``delete`` works; two are provided: an in-memory
store for sessions and tests, and a file-backed store for the CLI and server.
"""

import os
import threading
from typing import Dict, Optional, Protocol, runtime_checkable

from paymentflow.builder.json_graph import write_atomic

@runtime_checkable
class KeyValueStore(Protocol):
    def get(self, slot: str) -> Optional[str]: ...
    def set(self, slot: str, value: str) -> None: ...
    def delete(self, slot: str) -> None: ...

class MemoryStorage:
    """Dict-backed slots."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._slots: Dict[str, str] = dict(initial or {})

    def get(self, slot: str) -> Optional[str]:
        return self._slots.get(slot)

    def set(self, slot: str, value: str) -> None:
        self._slots[slot] = value

    def delete(self, slot: str) -> None:
        self._slots.pop(slot, None)

class FileStorage:
    """
    File-based slot storage: one ``<slot>.json`` file per slot.
    Thread-safe, atomic writes.
    """

    def __init__(self, base_dir: str = "./.paymentflow_storage") -> None:
        self._base_dir = base_dir
        os.makedirs(self._base_dir, exist_ok=True)
        self._lock = threading.Lock()

    @property
    def base_dir(self) -> str:
        return self._base_dir

    def _path(self, slot: str) -> str:
        return os.path.join(self._base_dir, f"{slot}.json")

    def get(self, slot: str) -> Optional[str]:
        try:
            with self._lock:
                with open(self._path(slot), "r", encoding="utf-8") as f:
                    return f.read()
        except FileNotFoundError:
            return None

    def set(self, slot: str, value: str) -> None:
        with self._lock:
            write_atomic(self._path(slot), value.encode("utf-8"))

    def delete(self, slot: str) -> None:
        with self._lock:
            try:
                os.remove(self._path(slot))
            except FileNotFoundError:
                pass
