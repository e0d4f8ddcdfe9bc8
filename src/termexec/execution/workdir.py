"""Working directory resolution."""

from __future__ import annotations

import asyncio
import os
from collections.abc import Awaitable, Callable
from dataclasses import dataclass


class WorkingDirectoryNotFound(Exception):
    """The requested working directory does not exist."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Working directory '{path}' does not exist.")


@dataclass(frozen=True)
class ResolvedContext:
    """Where a command will be launched.

    Attributes:
        working_dir: Absolute directory the terminal is acquired for.
        base_dir: The caller's default directory.
        has_override: True iff the caller supplied an override directory.
    """

    working_dir: str
    base_dir: str
    has_override: bool


async def directory_exists(path: str) -> bool:
    return await asyncio.to_thread(os.path.isdir, path)


async def resolve_working_directory(
    base_dir: str,
    override: str | None,
    exists: Callable[[str], Awaitable[bool]] = directory_exists,
) -> ResolvedContext:
    """Resolve the launch directory for a command.

    A relative override is resolved against base_dir. The existence check
    only runs for overrides; the base directory is trusted.

    Raises:
        WorkingDirectoryNotFound: If the override directory does not exist.
    """
    if not override:
        return ResolvedContext(working_dir=base_dir, base_dir=base_dir, has_override=False)

    if os.path.isabs(override):
        working_dir = override
    else:
        working_dir = os.path.abspath(os.path.join(base_dir, override))

    if not await exists(working_dir):
        raise WorkingDirectoryNotFound(working_dir)

    return ResolvedContext(working_dir=working_dir, base_dir=base_dir, has_override=True)
