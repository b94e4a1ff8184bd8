"""Storage protocol — the I/O boundary consumed by the scanner and loaders.

warble never touches a concrete filesystem or database API.  Anything
that can read bytes, list a directory and write bytes can back a router:
a local directory, a SQLite table, a remote bucket.

Directory listings mark subdirectories with a trailing ``/``::

    await storage.list_dir("/routes/")
    # ["about.page.md", "docs/", "index.page.html"]
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class Storage(Protocol):
    """Async content-addressed storage.

    ``read`` raises ``FileNotFoundError`` for a missing path.
    ``list_dir`` raises ``FileNotFoundError`` for a missing directory
    and returns names in a stable order.
    """

    async def read(self, path: str) -> bytes: ...
    async def list_dir(self, path: str) -> list[str]: ...
    async def write(self, path: str, data: bytes) -> None: ...


async def read_text(storage: Storage, path: str) -> str:
    """Read *path* and decode it as UTF-8."""
    data = await storage.read(path)
    return data.decode("utf-8")


async def exists(storage: Storage, path: str) -> bool:
    """Whether *path* can be read (files) or listed (paths ending in ``/``)."""
    try:
        if path.endswith("/"):
            await storage.list_dir(path)
        else:
            await storage.read(path)
    except FileNotFoundError:
        return False
    return True
