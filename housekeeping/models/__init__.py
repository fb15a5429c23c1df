# Data models for housekeeping.
#
# This package contains dataclasses and enums for identity references and
# their resolved outcomes.

from .identity import (
    DIRECTORY_KINDS,
    DirectoryEntry,
    DirectoryObject,
    IdentityClassification,
    IdentityReference,
    ObjectKind,
    ResolvedDirectoryObject,
)

__all__ = [
    "DIRECTORY_KINDS",
    "DirectoryEntry",
    "DirectoryObject",
    "IdentityClassification",
    "IdentityReference",
    "ObjectKind",
    "ResolvedDirectoryObject",
]
