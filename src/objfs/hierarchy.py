"""Hierarchical listings over a flat object store.

A folder listing is one delimiter-bounded prefix query (fully paginated):
plain entries become files, common prefixes become subfolders. Recursive
listings build a tree first; flat results are produced by a separate
flattening pass and sorted once after collection, so the order never
depends on which store round trip finished first.

Filtering rules:
    - files: ``exclude`` then ``include`` on the basename
    - folders: ``exclude`` before the recursion decision, ``include`` after
      it. A folder rejected by ``include`` is hidden but, in flat mode, its
      descendants are still reported.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, replace

from objfs.adapters.base import ObjectStoreAdapter
from objfs.filetypes import get_file_type
from objfs.models import FOLDER_TYPE, FsObject, ListConfig, ListingEntry
from objfs.paths import SEPARATOR, PathResolver

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONCURRENCY = 8


@dataclass
class _Node:
    entry: FsObject
    children: list[_Node] | None
    visible: bool


def _sort_key(entry: FsObject) -> tuple[bool, str]:
    return (not entry.is_folder, entry.value.upper())


def sort_entries(entries: Iterable[FsObject]) -> list[FsObject]:
    """Folders first, then case-insensitive ascending basename."""
    return sorted(entries, key=_sort_key)


def flatten_tree(entries: Iterable[FsObject]) -> Iterator[FsObject]:
    """Yield every entry of a nested listing, depth first."""
    for entry in entries:
        yield entry
        if entry.data:
            yield from flatten_tree(entry.data)


def _basename(key: str) -> str:
    return key.rstrip(SEPARATOR).rsplit(SEPARATOR, 1)[-1]


def _timestamp(entry: ListingEntry) -> float | None:
    return entry.last_modified.timestamp() if entry.last_modified is not None else None


class HierarchyBuilder:
    """Builds folder/file listings from prefix queries.

    Args:
        adapter: Store adapter issuing the prefix listings.
        resolver: Resolver used to map keys back to virtual ids.
        placeholder_name: Basename of folder placeholder objects; hidden from listings.
        type_table: Extension to type table used to classify files.
        max_concurrency: Upper bound on concurrent subfolder listings.
    """

    def __init__(
        self,
        adapter: ObjectStoreAdapter,
        resolver: PathResolver,
        *,
        placeholder_name: str,
        type_table: Mapping[str, str] | None = None,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
    ) -> None:
        self._adapter = adapter
        self._resolver = resolver
        self._placeholder_name = placeholder_name
        self._type_table = type_table
        self._max_concurrency = max_concurrency

    async def list_folder(self, path: str, config: ListConfig | None = None) -> list[FsObject]:
        """List a folder given its absolute path.

        Returns:
            A sorted flat list, or a sorted tree when ``config.nested`` is set.
        """
        cfg = config or ListConfig()
        limiter = asyncio.Semaphore(self._max_concurrency)
        nodes = await self._walk(path, cfg, limiter)

        if cfg.nested:
            return self._to_tree(nodes)
        return sort_entries(self._flatten(nodes))

    async def fetch_prefix(
        self,
        prefix: str,
        delimiter: str | None = SEPARATOR,
        limit: int | None = None,
    ) -> tuple[list[ListingEntry], list[str]]:
        """Run a prefix listing, consuming every continuation token.

        Args:
            prefix: Key prefix to list.
            delimiter: Grouping delimiter, or None for a recursive key listing.
            limit: Stop once this many entries were collected.
        """
        entries: list[ListingEntry] = []
        prefixes: list[str] = []
        token: str | None = None

        while True:
            page = await self._adapter.list_by_prefix(
                prefix,
                delimiter,
                continuation_token=token,
                max_keys=limit,
            )
            entries.extend(page.entries)
            prefixes.extend(page.common_prefixes)
            token = page.continuation_token
            if token is None or (limit is not None and len(entries) >= limit):
                break

        if limit is not None:
            entries = entries[:limit]
        return entries, prefixes

    async def descendant_keys(self, path: str, limit: int | None = None) -> list[str]:
        """Keys of every object below a folder path."""
        prefix = self._resolver.folder_prefix(path)
        entries, _ = await self.fetch_prefix(prefix, None, limit)
        return [entry.key for entry in entries]

    async def _walk(
        self,
        path: str,
        cfg: ListConfig,
        limiter: asyncio.Semaphore,
    ) -> list[_Node]:
        prefix = self._resolver.folder_prefix(path)
        async with limiter:
            entries, common_prefixes = await self.fetch_prefix(prefix)

        nodes: list[_Node] = []

        if not cfg.skip_files:
            for item in entries:
                if item.key == prefix:
                    continue

                value = _basename(item.key)
                if value == self._placeholder_name:
                    continue
                if cfg.exclude and cfg.exclude(value):
                    continue
                if cfg.include and not cfg.include(value):
                    continue

                entry = FsObject(
                    id=self._resolver.key_to_id(item.key),
                    value=value,
                    size=item.size,
                    date=_timestamp(item),
                    type=get_file_type(value, self._type_table),
                )
                nodes.append(_Node(entry, None, True))

        folders: list[tuple[str, str]] = []
        for common in common_prefixes:
            name = common.rstrip(SEPARATOR)
            value = _basename(name)
            if cfg.exclude and cfg.exclude(value):
                continue
            folders.append((name, value))

        if cfg.sub_folders:
            subtrees: list[list[_Node] | None] = list(
                await asyncio.gather(
                    *(
                        self._walk(self._resolver.key_to_path(name), cfg, limiter)
                        for name, _ in folders
                    )
                )
            )
        else:
            subtrees = [None] * len(folders)

        for (name, value), children in zip(folders, subtrees, strict=True):
            entry = FsObject(
                id=self._resolver.key_to_id(name),
                value=value,
                size=0,
                date=None,
                type=FOLDER_TYPE,
            )
            visible = not (cfg.include and not cfg.include(value))
            nodes.append(_Node(entry, children, visible))

        return nodes

    def _to_tree(self, nodes: list[_Node]) -> list[FsObject]:
        result: list[FsObject] = []
        for node in nodes:
            if not node.visible:
                continue
            if node.children is None:
                result.append(node.entry)
            else:
                result.append(replace(node.entry, data=self._to_tree(node.children)))
        return sort_entries(result)

    def _flatten(self, nodes: list[_Node]) -> Iterator[FsObject]:
        for node in nodes:
            if node.visible:
                yield node.entry
            if node.children:
                yield from self._flatten(node.children)
