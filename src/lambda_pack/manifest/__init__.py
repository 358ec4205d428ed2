"""Dependency manifest reading."""

from lambda_pack.manifest.reader import (
    LOCKFILE_NAMES,
    MANIFEST_FILE_NAME,
    PackageManifest,
    read_manifest,
)

__all__ = [
    "LOCKFILE_NAMES",
    "MANIFEST_FILE_NAME",
    "PackageManifest",
    "read_manifest",
]
