"""Virtual path resolution for objfs.

Maps caller-facing virtual ids to absolute paths under the configured root,
and absolute paths to store keys. Absolute paths always start with "/";
store keys never do.
"""

from __future__ import annotations

import posixpath
from dataclasses import dataclass

from objfs.errors import InvalidRootError

S3_SCHEME = "s3://"
SEPARATOR = "/"


def _normalize_root(prefix: str) -> str:
    # /some/path/ => /some/path, /root/some/../../other => /other
    prefix = prefix.rstrip(SEPARATOR)
    normalized = posixpath.normpath(SEPARATOR + prefix.lstrip(SEPARATOR)) if prefix else "."
    if normalized in (".", ""):
        return SEPARATOR
    return normalized


@dataclass(frozen=True, slots=True)
class PathResolver:
    """Resolves virtual ids against a fixed root.

    Attributes:
        bucket: Bucket name parsed from the root.
        root: Canonical absolute root path ("/" for the bucket top level).
    """

    bucket: str
    root: str

    @classmethod
    def from_root(cls, root: str, scheme: str = S3_SCHEME) -> PathResolver:
        """Parse a ``scheme://bucket[/prefix]`` root.

        Args:
            root: Root location of the filesystem.
            scheme: Required scheme prefix.

        Returns:
            A resolver bound to the parsed bucket and canonical root.

        Raises:
            InvalidRootError: If the scheme prefix or the bucket name is missing.
        """
        if not root or not root.startswith(scheme):
            raise InvalidRootError(path=root)

        rest = root[len(scheme) :]
        bucket, sep, prefix = rest.partition(SEPARATOR)
        if not bucket:
            raise InvalidRootError("Invalid root folder: missing bucket name", path=root)

        return cls(bucket=bucket, root=_normalize_root(prefix if sep else ""))

    @property
    def is_top_level(self) -> bool:
        return self.root == SEPARATOR

    def id_to_path(self, virtual_id: str) -> str:
        """Join a virtual id under the root and normalize it.

        ``..`` segments are collapsed but not rejected; a result outside the
        root is denied later by the root confinement policy.
        """
        joined = self.root.rstrip(SEPARATOR) + SEPARATOR + (virtual_id or "").lstrip(SEPARATOR)
        return posixpath.normpath(joined)

    def path_to_id(self, path: str) -> str:
        """Strip the root from an absolute path, keeping one leading separator."""
        if not self.is_top_level and (path == self.root or path.startswith(self.root + SEPARATOR)):
            path = path[len(self.root) :]

        if not path.startswith(SEPARATOR):
            path = SEPARATOR + path

        return path

    @staticmethod
    def path_to_key(path: str) -> str:
        """Convert an absolute path to a store key."""
        return path.lstrip(SEPARATOR)

    @staticmethod
    def key_to_path(key: str) -> str:
        """Convert a store key to an absolute path."""
        return SEPARATOR + key.rstrip(SEPARATOR)

    @staticmethod
    def folder_prefix(path: str) -> str:
        """Listing prefix for a folder: its key plus one trailing delimiter.

        The store top level maps to the empty prefix.
        """
        key = path.strip(SEPARATOR)
        return key + SEPARATOR if key else ""

    def key_to_id(self, key: str) -> str:
        return self.path_to_id(self.key_to_path(key))
