"""
Parent directory materialization.

The service only creates a directory whose parent already exists, so before
a file can be uploaded to /12345/images/cat.png the directories /12345 and
/12345/images must be created, in that order. Directories that already exist
answer 409, which is treated as success; that makes the walk idempotent.
"""
from __future__ import annotations

import logging
import posixpath
from typing import Any, Mapping, Optional, Protocol, Tuple, Union, runtime_checkable

from .errors import NetStorageError, is_conflict

__all__ = ["DirectoryMaker", "PathMaterializer", "absolute_target", "ancestor_chain"]

logger = logging.getLogger(__name__)


@runtime_checkable
class DirectoryMaker(Protocol):
    """Anything that can create one remote directory."""

    async def mkdir(self, path: str) -> Any:
        """
        Create a single directory whose parent exists.

        Raises:
            ProtocolError: status 409 if the directory already exists
            NetStorageError: For any other failure
        """
        ...


def absolute_target(base_prefix: Union[str, int], target_path: str) -> str:
    """
    Join a cpcode prefix and a relative target into a normalized absolute path.

    Examples:
        >>> absolute_target("12345", "images/cat.png")
        '/12345/images/cat.png'

        >>> absolute_target(12345, "//images//./cat.png")
        '/12345/images/cat.png'

        >>> absolute_target("", "cat.png")
        '/cat.png'
    """
    joined = f"/{base_prefix}/{target_path}"
    segments = [s for s in joined.split("/") if s]
    # normpath resolves "." and "..", and never climbs above "/"
    return posixpath.normpath("/" + "/".join(segments))


def ancestor_chain(absolute_path: str) -> Tuple[str, ...]:
    """
    Directories that must exist before absolute_path can be created.

    Ordered shortest first; the leaf itself is excluded.

    Examples:
        >>> ancestor_chain("/12345/images/cat.png")
        ('/12345', '/12345/images')

        >>> ancestor_chain("/cat.png")
        ()
    """
    segments = [s for s in absolute_path.split("/") if s]
    return tuple("/" + "/".join(segments[:i]) for i in range(1, len(segments)))


class PathMaterializer:
    """Creates every ancestor directory of a target path, parent first."""

    def __init__(self, maker: DirectoryMaker, *, config: Optional[Mapping[str, Any]] = None):
        """
        Args:
            maker: Object used to create each directory (normally the client)
            config: Redacted settings view attached to errors for diagnostics
        """
        self._maker = maker
        self._config = config

    async def ensure_ancestors(self, base_prefix: Union[str, int], target_path: str) -> str:
        """
        Make sure every parent directory of the target exists.

        Args:
            base_prefix: cpcode (or other root prefix); may be empty
            target_path: Path of the file relative to base_prefix

        Returns:
            The normalized absolute target path

        Raises:
            NetStorageError: The first non-409 failure, annotated with phase
                "mkdir", the directory that failed and the configuration
        """
        target = absolute_target(base_prefix, target_path)
        chain = ancestor_chain(target)
        logger.debug("Ensuring %d ancestor directories for %s", len(chain), target)

        for prefix in chain:
            try:
                await self._maker.mkdir(prefix)
            except NetStorageError as e:
                if is_conflict(e):
                    logger.debug("Directory %s already exists", prefix)
                    continue
                raise e.annotate("mkdir", path=prefix, config=self._config)

        return target
