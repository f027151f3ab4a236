"""Virtual filesystem facade over a flat object store.

Every operation resolves its virtual path(s) under the root, checks the
policy, and only then talks to the store. A denied operation raises
AccessDeniedError before any store call, so it never leaves partial effects.

Multi-step operations (folder copy, move, batch delete, collision-avoiding
rename) are plain sequences of store calls without locks or rollback. A
failure midway is raised to the caller and the completed steps stay applied.
"""

from __future__ import annotations

import logging
import posixpath
from dataclasses import replace
from typing import Any

from objfs.adapters.base import ObjectStoreAdapter, ObjectStream, PutBody
from objfs.config import DriveConfig
from objfs.errors import AccessDeniedError, NotFoundError
from objfs.filetypes import build_type_table, get_file_type
from objfs.hierarchy import HierarchyBuilder
from objfs.models import (
    FOLDER_TYPE,
    FsObject,
    ListConfig,
    ObjectHead,
    OperationConfig,
    StorageStats,
)
from objfs.naming import NameCollisionResolver
from objfs.paths import SEPARATOR, PathResolver
from objfs.policy import Operation, Policy, confine_to_root
from objfs.tracing import traced_fs_operation

logger = logging.getLogger(__name__)


def _search_predicate(term: str, include: Any) -> Any:
    needle = term.lower()

    def predicate(name: str) -> bool:
        if needle not in name.lower():
            return False
        return include is None or bool(include(name))

    return predicate


class VirtualFilesystem:
    """Directory-aware access to a key-prefix object store.

    Args:
        root: Filesystem root as ``s3://bucket[/prefix]``.
        adapter: Store adapter bound to the root's bucket.
        policy: Optional caller policy; root confinement is always applied beneath it.
        config: Drive configuration (verbose logging, placeholder name, type table).

    Raises:
        InvalidRootError: If ``root`` is malformed.
    """

    def __init__(
        self,
        root: str,
        adapter: ObjectStoreAdapter,
        policy: Policy | None = None,
        config: DriveConfig | None = None,
    ) -> None:
        self._resolver = PathResolver.from_root(root)
        self._adapter = adapter
        self._config = config or DriveConfig()
        self._policy = confine_to_root(self._resolver.root, policy)
        self._type_table = build_type_table(self._config.file_types)
        self._hierarchy = HierarchyBuilder(
            adapter,
            self._resolver,
            placeholder_name=self._config.placeholder_name,
            type_table=self._type_table,
        )
        self._names = NameCollisionResolver(self._hierarchy)

    @property
    def root(self) -> str:
        return self._resolver.root

    @property
    def bucket(self) -> str:
        return self._resolver.bucket

    @property
    def policy(self) -> Policy:
        return self._policy

    @property
    def backend_name(self) -> str:
        return self._adapter.backend_name

    async def close(self) -> None:
        await self._adapter.close()

    async def __aenter__(self) -> VirtualFilesystem:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    def _log(self, operation: str, path: str, **fields: Any) -> None:
        if not self._config.verbose:
            return
        details = " ".join(f"{k}={v}" for k, v in fields.items() if v is not None)
        logger.info(
            "%s %s %s",
            operation,
            path,
            details,
            extra={
                "objfs_op": operation,
                "objfs_path": path,
                **{f"objfs_{k}": v for k, v in fields.items()},
            },
        )

    def _check(self, virtual_id: str, path: str, operation: Operation) -> None:
        if not self._policy.comply(path, operation):
            raise AccessDeniedError(path=virtual_id, operation=operation.value)

    def _join(self, folder: str, name: str) -> str:
        return posixpath.normpath(folder.rstrip(SEPARATOR) + SEPARATOR + name)

    @traced_fs_operation("list")
    async def list(self, path: str, config: ListConfig | None = None) -> list[FsObject]:
        """List a folder.

        Returns:
            Sorted entries (folders first), or a tree when ``config.nested`` is set.

        Raises:
            AccessDeniedError: If reading the folder is not allowed.
        """
        self._log("list", path, config=config)
        fullpath = self._resolver.id_to_path(path)
        self._check(path, fullpath, Operation.READ)
        return await self._hierarchy.list_folder(fullpath, config)

    @traced_fs_operation("search")
    async def search(
        self,
        path: str,
        term: str,
        config: ListConfig | None = None,
    ) -> list[FsObject]:
        """Recursively find entries whose basename contains ``term`` (case-insensitive)."""
        self._log("search", path, term=term)
        fullpath = self._resolver.id_to_path(path)
        self._check(path, fullpath, Operation.READ)

        cfg = config or ListConfig()
        cfg = replace(
            cfg,
            sub_folders=True,
            nested=False,
            include=_search_predicate(term, cfg.include),
        )
        return await self._hierarchy.list_folder(fullpath, cfg)

    @traced_fs_operation("read")
    async def read(self, path: str) -> ObjectStream:
        """Open a lazy byte stream over a file.

        Raises:
            AccessDeniedError: If reading is not allowed.
            NotFoundError: If the file does not exist.
        """
        self._log("read", path)
        fullpath = self._resolver.id_to_path(path)
        self._check(path, fullpath, Operation.READ)
        return await self._adapter.get_object_stream(self._resolver.path_to_key(fullpath))

    @traced_fs_operation("write")
    async def write(
        self,
        path: str,
        data: PutBody,
        config: OperationConfig | None = None,
    ) -> str:
        """Upload content to a file.

        With ``prevent_name_collision`` the file is renamed first if its name
        is taken in the parent folder.

        Returns:
            Virtual id of the written file.
        """
        self._log("write", path, config=config)
        fullpath = self._resolver.id_to_path(path)
        self._check(path, fullpath, Operation.WRITE)
        self._check_entry(path, fullpath)

        if config and config.prevent_name_collision:
            fullpath = await self._free_destination(path, fullpath, False)

        await self._adapter.put_object(self._resolver.path_to_key(fullpath), data)
        return self._resolver.path_to_id(fullpath)

    @traced_fs_operation("remove")
    async def remove(self, path: str) -> None:
        """Delete a file, or every object below a folder in one batch."""
        self._log("remove", path)
        fullpath = self._resolver.id_to_path(path)
        self._check(path, fullpath, Operation.WRITE)
        await self._remove_path(fullpath)

    @traced_fs_operation("copy")
    async def copy(
        self,
        source: str,
        target: str,
        name: str | None = None,
        config: OperationConfig | None = None,
    ) -> str:
        """Copy a file or folder into the ``target`` folder.

        Args:
            source: Virtual id of the file or folder to copy.
            target: Virtual id of the destination folder.
            name: Name inside the destination; defaults to the source basename.
            config: Collision avoidance switch.

        Returns:
            Virtual id of the copy.
        """
        self._log("copy", source, target=target, name=name)
        source_path, destination = self._plan_transfer(source, target, name)
        return await self._transfer(target, source_path, destination, config)

    @traced_fs_operation("move")
    async def move(
        self,
        source: str,
        target: str,
        name: str | None = None,
        config: OperationConfig | None = None,
    ) -> str:
        """Move a file or folder: copy, then remove the source.

        All permissions are checked before the copy starts. The two steps are
        not atomic; if the removal fails both copies remain and the error is
        raised.

        Returns:
            Virtual id of the moved entry.
        """
        self._log("move", source, target=target, name=name)
        source_path, destination = self._plan_transfer(source, target, name)
        self._check(source, source_path, Operation.WRITE)

        result = await self._transfer(target, source_path, destination, config)
        await self._remove_path(source_path)
        return result

    def _plan_transfer(self, source: str, target: str, name: str | None) -> tuple[str, str]:
        source_path = self._resolver.id_to_path(source)
        target_path = self._resolver.id_to_path(target)

        self._check(source, source_path, Operation.READ)
        self._check(target, target_path, Operation.WRITE)

        destination = self._join(target_path, name or posixpath.basename(source_path))
        self._check(target, destination, Operation.WRITE)
        self._check_entry(target, destination)
        return source_path, destination

    def _check_entry(self, virtual_id: str, destination: str) -> None:
        # The root folder itself is never a file or folder to create or overwrite.
        if destination == self._resolver.root:
            raise AccessDeniedError("Entry must lie below the root folder", path=virtual_id)

    async def _free_destination(self, virtual_id: str, destination: str, is_folder: bool) -> str:
        """Rename ``destination`` until its name is free in the parent folder.

        The parent listing is a read and the renamed path a new write target,
        so both go through the policy.
        """
        folder, name = posixpath.split(destination)
        self._check(virtual_id, folder, Operation.READ)
        name = await self._names.resolve(folder, name, is_folder)
        destination = self._join(folder, name)
        self._check(virtual_id, destination, Operation.WRITE)
        return destination

    async def _transfer(
        self,
        target: str,
        source_path: str,
        destination: str,
        config: OperationConfig | None,
    ) -> str:
        source_key = self._resolver.path_to_key(source_path)
        source_files = await self._hierarchy.descendant_keys(source_path)

        if config and config.prevent_name_collision:
            destination = await self._free_destination(target, destination, bool(source_files))

        destination_key = self._resolver.path_to_key(destination)

        if not source_files:
            await self._adapter.copy_object(source_key, destination_key)
        else:
            source_prefix = self._resolver.folder_prefix(source_path)
            destination_prefix = self._resolver.folder_prefix(destination)
            for key in source_files:
                relative = key[len(source_prefix) :]
                if key == source_key or not relative:
                    continue
                await self._adapter.copy_object(key, destination_prefix + relative)

        return self._resolver.path_to_id(destination)

    async def _remove_path(self, fullpath: str) -> None:
        keys = await self._hierarchy.descendant_keys(fullpath)
        if keys:
            await self._adapter.delete_objects(keys)
        else:
            await self._adapter.delete_object(self._resolver.path_to_key(fullpath))

    @traced_fs_operation("info")
    async def info(self, path: str) -> FsObject:
        """Describe a file or folder.

        Folders have no object of their own; their metadata comes from the
        adapter's folder lookup (placeholder date, or no date at all).

        Raises:
            AccessDeniedError: If reading is not allowed.
            NotFoundError: If nothing exists at the path.
        """
        self._log("info", path)
        fullpath = self._resolver.id_to_path(path)
        self._check(path, fullpath, Operation.READ)
        return await self._info(fullpath)

    async def _info(self, fullpath: str) -> FsObject:
        virtual_id = self._resolver.path_to_id(fullpath)
        name = posixpath.basename(fullpath)
        key = self._resolver.path_to_key(fullpath)

        if not key:
            return FsObject(id=virtual_id, value=name, size=0, date=None, type=FOLDER_TYPE)

        head: ObjectHead
        try:
            head = await self._adapter.head_object(key)
        except NotFoundError:
            head = await self._adapter.head_folder(key, self._config.placeholder_name)

        date = head.last_modified.timestamp() if head.last_modified is not None else None
        if head.is_directory:
            return FsObject(id=virtual_id, value=name, size=0, date=date, type=FOLDER_TYPE)

        return FsObject(
            id=virtual_id,
            value=name,
            size=head.size,
            date=date,
            type=get_file_type(name, self._type_table),
        )

    @traced_fs_operation("exists")
    async def exists(self, path: str) -> bool:
        """True if the path has metadata or any object below it."""
        self._log("exists", path)
        fullpath = self._resolver.id_to_path(path)
        self._check(path, fullpath, Operation.READ)

        try:
            await self._info(fullpath)
            return True
        except NotFoundError:
            keys = await self._hierarchy.descendant_keys(fullpath, limit=1)
            return bool(keys)

    @traced_fs_operation("mkdir")
    async def mkdir(
        self,
        path: str,
        name: str | None = None,
        config: OperationConfig | None = None,
    ) -> str:
        """Create a folder by uploading an empty placeholder object.

        ``mkdir("/a/b")`` and ``mkdir("/a", "b")`` are equivalent.

        Returns:
            Virtual id of the folder.
        """
        self._log("mkdir", path, name=name, config=config)
        return await self._make(path, name, True, config)

    @traced_fs_operation("make")
    async def make(
        self,
        path: str,
        name: str,
        is_folder: bool = False,
        config: OperationConfig | None = None,
    ) -> str:
        """Create an empty file, or a folder, named ``name`` inside ``path``."""
        self._log("make", path, name=name, is_folder=is_folder, config=config)
        return await self._make(path, name, is_folder, config)

    async def _make(
        self,
        path: str,
        name: str | None,
        is_folder: bool,
        config: OperationConfig | None,
    ) -> str:
        fullpath = self._resolver.id_to_path(path)
        if name is None:
            fullpath, name = posixpath.split(fullpath)

        self._check(path, fullpath, Operation.WRITE)
        destination = self._join(fullpath, name)
        self._check(path, destination, Operation.WRITE)
        self._check_entry(path, destination)
        if not destination.startswith(fullpath.rstrip(SEPARATOR) + SEPARATOR):
            raise AccessDeniedError("Entry name must stay inside its folder", path=path)

        if config and config.prevent_name_collision:
            destination = await self._free_destination(path, destination, is_folder)

        key = self._resolver.path_to_key(destination)
        if is_folder:
            key = f"{key}/{self._config.placeholder_name}"
        await self._adapter.put_object(key, b"")

        return self._resolver.path_to_id(destination)

    @traced_fs_operation("stats")
    async def stats(self, path: str = SEPARATOR) -> StorageStats:
        """Total size of the objects below a folder."""
        self._log("stats", path)
        fullpath = self._resolver.id_to_path(path)
        self._check(path, fullpath, Operation.READ)

        entries, _ = await self._hierarchy.fetch_prefix(
            self._resolver.folder_prefix(fullpath),
            None,
        )
        return StorageStats(used=sum(entry.size for entry in entries))
