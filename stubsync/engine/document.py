"""Raw document text I/O.

The engine reads and overwrites whole documents through the ``DocumentIO``
protocol. ``FileDocument`` is the file-backed implementation the server uses;
tests and other hosts can pass anything with the same two coroutines.
"""

import asyncio
import logging
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)


class DocumentIO(Protocol):
    """Read the full text of a document; overwrite the full text of a document."""

    async def read(self) -> str: ...

    async def write(self, text: str) -> None: ...


class FileDocument:
    """A UTF-8 text file, read and written off the event loop.

    Attributes:
        path: Location of the file
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def __repr__(self) -> str:
        return f"FileDocument({str(self.path)!r})"

    async def read(self) -> str:
        return await asyncio.to_thread(self._read)

    async def write(self, text: str) -> None:
        await asyncio.to_thread(self._write, text)
        logger.info(f"Wrote {len(text)} chars to {self.path}")

    def _read(self) -> str:
        # newline="" keeps line endings exactly as stored
        with self.path.open("r", encoding="utf-8", newline="") as f:
            return f.read()

    def _write(self, text: str) -> None:
        with self.path.open("w", encoding="utf-8", newline="") as f:
            f.write(text)


class MemoryDocument:
    """An in-memory document, for hosts that hold text themselves."""

    def __init__(self, text: str = ""):
        self.text = text
        self.writes = 0

    async def read(self) -> str:
        return self.text

    async def write(self, text: str) -> None:
        self.text = text
        self.writes += 1
