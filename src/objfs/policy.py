"""objfs access policy definitions.

A policy is an immutable decision object answering whether an operation may
touch an absolute path. Policies combine conjunctively:

- AllowAllPolicy / DenyAllPolicy: constant decisions
- ReadOnlyPolicy: reads only
- ForceRootPolicy: confinement to a path subtree
- CombinedPolicy: logical AND of any number of policies

The filesystem always places ForceRootPolicy beneath the caller's policy, so
root confinement cannot be widened by a permissive custom policy.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum


class Operation(str, Enum):
    """Kind of access requested by a filesystem operation."""

    READ = "read"
    WRITE = "write"


class Policy(ABC):
    """Base class for access policies."""

    @abstractmethod
    def comply(self, path: str, operation: Operation) -> bool:
        """Return True if ``operation`` is allowed on the absolute ``path``."""
        ...

    def __and__(self, other: Policy) -> CombinedPolicy:
        return CombinedPolicy(self, other)


@dataclass(frozen=True, slots=True)
class AllowAllPolicy(Policy):
    def comply(self, path: str, operation: Operation) -> bool:
        return True


@dataclass(frozen=True, slots=True)
class DenyAllPolicy(Policy):
    def comply(self, path: str, operation: Operation) -> bool:
        return False


@dataclass(frozen=True, slots=True)
class ReadOnlyPolicy(Policy):
    def comply(self, path: str, operation: Operation) -> bool:
        return operation == Operation.READ


@dataclass(frozen=True, slots=True)
class ForceRootPolicy(Policy):
    """Allows any operation on the root and paths beneath it.

    Containment is checked at path-segment boundaries: a root of
    "/sandbox" admits "/sandbox" and "/sandbox/a" but not "/sandboxed".

    Attributes:
        root: Canonical absolute root path.
    """

    root: str

    def comply(self, path: str, operation: Operation) -> bool:
        if self.root == "/":
            return path.startswith("/")
        return path == self.root or path.startswith(self.root.rstrip("/") + "/")


class CombinedPolicy(Policy):
    """Conjunction of policies; vacuously true when empty."""

    __slots__ = ("_policies",)

    def __init__(self, *policies: Policy) -> None:
        self._policies: tuple[Policy, ...] = tuple(policies)

    @property
    def policies(self) -> tuple[Policy, ...]:
        return self._policies

    def comply(self, path: str, operation: Operation) -> bool:
        return all(policy.comply(path, operation) for policy in self._policies)

    def __repr__(self) -> str:
        inner = ", ".join(repr(p) for p in self._policies)
        return f"CombinedPolicy({inner})"


def confine_to_root(root: str, policy: Policy | None = None) -> Policy:
    """Place root confinement beneath an optional caller policy."""
    force_root = ForceRootPolicy(root)
    if policy is None:
        return force_root
    return CombinedPolicy(force_root, policy)
