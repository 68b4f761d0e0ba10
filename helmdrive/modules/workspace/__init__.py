"""
Workspace Module - Black Box Interface

Purpose: Turn an in-memory release set spec into files helmfile can read
Interface: materialize(spec) -> Workspace
Hidden: Content hashing, file naming, directory creation
"""

from .workspace import (
    content_hash,
    ensure_directory,
    manifest_filename,
    materialize,
    values_filename,
    write_values_files,
)

__all__ = [
    "content_hash",
    "ensure_directory",
    "manifest_filename",
    "materialize",
    "values_filename",
    "write_values_files",
]
