"""Name collision avoidance.

Derives a free name inside a folder by appending a "(n)" counter before the
extension: "a.txt" -> "a(1).txt" -> "a(2).txt". A name that already carries
a counter continues from it instead of restarting at 1.

The extension of a file is everything from the FIRST dot of its basename, so
"archive.tar.gz" keeps ".tar.gz" intact and becomes "archive(1).tar.gz".
Folders never have an extension.

The check and the following write are separate store calls; a concurrent
writer can still take the resolved name in between.
"""

from __future__ import annotations

import re

from objfs.hierarchy import HierarchyBuilder

_COUNTER_PATTERN = re.compile(r"\((\d+)\)$")


def split_name(name: str, is_folder: bool) -> tuple[str, str]:
    """Split a basename into (base, extension) at the first dot."""
    if is_folder:
        return name, ""
    dot = name.find(".")
    if dot < 0:
        return name, ""
    return name[:dot], name[dot:]


def next_name(name: str, counter: int, is_folder: bool) -> str:
    """Apply a collision counter to a basename.

    Args:
        name: Current basename.
        counter: Counter to use when the base carries no "(k)" suffix yet.
        is_folder: Folders keep dots in the base.

    Returns:
        ``base(n)ext`` where n is k+1 for an existing "(k)" suffix, else counter.
    """
    base, ext = split_name(name, is_folder)

    match = _COUNTER_PATTERN.search(base)
    if match:
        base = base[: match.start()]
        counter = int(match.group(1)) + 1

    return f"{base}({counter}){ext}"


class NameCollisionResolver:
    """Finds a free name among a folder's direct children."""

    def __init__(self, hierarchy: HierarchyBuilder) -> None:
        self._hierarchy = hierarchy

    async def resolve(self, folder_path: str, name: str, is_folder: bool) -> str:
        """Return ``name`` or the first counter variant not taken in the folder.

        Args:
            folder_path: Absolute path of the target folder.
            name: Desired basename.
            is_folder: Whether the name denotes a folder.
        """
        children = await self._hierarchy.list_folder(folder_path)
        taken = {child.value for child in children}

        counter = 1
        while name in taken:
            name = next_name(name, counter, is_folder)
            counter += 1

        return name
