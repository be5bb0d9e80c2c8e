"""
Recording DirectoryMaker for materializer tests.
"""
from __future__ import annotations

from typing import Dict, Iterable, List, Set

from netstorage_http.errors import NetStorageError, ProtocolError
from netstorage_http.materializer import DirectoryMaker

__all__ = ["FakeDirectoryMaker"]


class FakeDirectoryMaker(DirectoryMaker):
    """
    Records every mkdir call and answers like the service would.

    Existing directories answer 409; paths registered with fail_with()
    raise the given error instead.
    """

    def __init__(self, existing: Iterable[str] = ()) -> None:
        self.existing: Set[str] = set(existing)
        self.calls: List[str] = []
        self._errors: Dict[str, NetStorageError] = {}

    def fail_with(self, path: str, error: NetStorageError) -> None:
        self._errors[path] = error

    async def mkdir(self, path: str):
        self.calls.append(path)
        if path in self._errors:
            raise self._errors[path]
        if path in self.existing:
            raise ProtocolError("The server sent us the 409 code", status=409)
        self.existing.add(path)
        return {"status": 200}
