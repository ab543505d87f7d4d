"""
File-backed store for the persisted session record.
"""

import asyncio
import json
import os
import tempfile
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Protocol, Union

from shared.logging import get_logger

Mutator = Callable[[Dict[str, Any]], Optional[Dict[str, Any]]]


class SessionStore(Protocol):
    async def load(self) -> Dict[str, Any]: ...

    async def update(self, mutator: Mutator) -> Dict[str, Any]: ...


class UserConfigStore:
    """JSON file holding the user's credentials (``accessToken`` and friends).

    ``update`` is a read-modify-write under a lock: it reads the current
    record, hands a copy to the mutator and atomically replaces the file with
    the result. It returns only after the new file is in place.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path).expanduser()
        self.logger = get_logger("session.store")
        self._lock: Optional[asyncio.Lock] = None
        self._lock_loop: Optional[asyncio.AbstractEventLoop] = None

    async def load(self) -> Dict[str, Any]:
        return await asyncio.to_thread(self._read)

    async def update(self, mutator: Mutator) -> Dict[str, Any]:
        async with self._get_lock():
            current = await asyncio.to_thread(self._read)
            working = dict(current)
            updated = mutator(working)
            if updated is None:
                updated = working
            if not isinstance(updated, dict):
                raise TypeError("Session record mutator must return a dict")
            await asyncio.to_thread(self._write, updated)

        self.logger.debug("Session record updated", path=str(self.path), keys=sorted(updated))
        return updated

    def _get_lock(self) -> asyncio.Lock:
        # Locks belong to one event loop; build a fresh one for each loop.
        loop = asyncio.get_running_loop()
        if self._lock is None or self._lock_loop is not loop:
            self._lock = asyncio.Lock()
            self._lock_loop = loop
        return self._lock

    def _read(self) -> Dict[str, Any]:
        try:
            with open(self.path, "r", encoding="utf-8") as fp:
                data = json.load(fp)
        except FileNotFoundError:
            return {}

        if not isinstance(data, dict):
            raise ValueError(f"Session record at {self.path} is not a JSON object")
        return data

    def _write(self, data: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=".user-config.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fp:
                json.dump(data, fp, indent=2, sort_keys=True)
                fp.flush()
                os.fsync(fp.fileno())
            os.chmod(tmp_path, 0o600)
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise
