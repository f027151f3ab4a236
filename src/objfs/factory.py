"""Filesystem construction from configuration."""

from __future__ import annotations

import logging

from objfs.adapters.s3 import S3ObjectStore
from objfs.config import DriveConfig
from objfs.observability.tracing import configure_tracing
from objfs.paths import PathResolver
from objfs.policy import Policy
from objfs.vfs import VirtualFilesystem

logger = logging.getLogger(__name__)


def open_filesystem(
    root: str,
    policy: Policy | None = None,
    config: DriveConfig | None = None,
) -> VirtualFilesystem:
    """Build an S3-backed filesystem.

    The root is validated before any client is created, so a malformed
    root fails without touching the network.
    Tracing is set up on first use when OBJFS_OTEL_ENABLED is set.

    Args:
        root: ``s3://bucket[/prefix]``.
        policy: Optional caller policy (root confinement is always applied).
        config: Credentials and behaviour switches; read from the
            environment when omitted.

    Raises:
        InvalidRootError: If ``root`` is malformed.
        ConfigError: If the environment configuration is invalid.
    """
    resolver = PathResolver.from_root(root)
    config = config or DriveConfig.from_env()
    configure_tracing()

    adapter = S3ObjectStore(
        resolver.bucket,
        access_key=config.access_key,
        secret_key=config.secret_value(),
        region=config.region,
        endpoint_url=config.endpoint_url,
    )
    logger.debug("Opened filesystem: bucket=%s, root=%s", resolver.bucket, resolver.root)
    return VirtualFilesystem(root, adapter, policy=policy, config=config)
