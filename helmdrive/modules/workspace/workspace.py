"""
Workspace materialization for helmfile operations.

The manifest and every state values overlay are written to files named by
the SHA-256 of their content, so unchanged content always maps to the same
path and distinct content never collides. Files are left in place after the
operation; concurrent writers of identical content rewrite identical bytes.
"""

import hashlib
import logging
import os
from typing import Iterable, List

from helmdrive.modules.api.errors import WorkspaceError
from helmdrive.modules.api.models import DeploymentSpec, Workspace

logger = logging.getLogger("helmdrive.workspace")

MANIFEST_PREFIX = "helmfile-"
VALUES_PREFIX = "temp.values-"
TEMPLATE_EXTENSION = ".yaml.gotmpl"
PLAIN_EXTENSION = ".yaml"


def content_hash(content: str) -> str:
    """Hex SHA-256 of the UTF-8 encoded content."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def manifest_filename(content: str, enable_go_template: bool = False) -> str:
    """
    Deterministic manifest filename.

    helmfile only renders template markers in files with the .gotmpl
    extension, so the extension follows the template setting.
    """
    extension = TEMPLATE_EXTENSION if enable_go_template else PLAIN_EXTENSION
    return f"{MANIFEST_PREFIX}{content_hash(content)}{extension}"


def values_filename(content: str) -> str:
    """Deterministic filename for one state values overlay."""
    return f"{VALUES_PREFIX}{content_hash(content)}{PLAIN_EXTENSION}"


def ensure_directory(path: str) -> None:
    """Create the working directory if it does not exist."""
    if not path:
        return
    try:
        os.makedirs(path, mode=0o755, exist_ok=True)
    except OSError as e:
        raise WorkspaceError(f"creating working directory failed ({e})", path) from e


def _write(path: str, content: str) -> None:
    try:
        with open(path, "w", encoding="utf-8") as f:
            f.write(content)
    except OSError as e:
        raise WorkspaceError(f"writing file failed ({e})", path) from e


def write_values_files(values: Iterable[str], working_directory: str) -> List[str]:
    """
    Write state values overlays and return their absolute paths.

    Args:
        values: Overlay blobs in precedence order (later overrides earlier)
        working_directory: Directory to write into

    Returns:
        Absolute paths in the same order as the overlays
    """
    paths = []
    for blob in values:
        path = os.path.abspath(os.path.join(working_directory, values_filename(blob)))
        _write(path, blob)
        paths.append(path)
    return paths


def materialize(spec: DeploymentSpec) -> Workspace:
    """
    Write the manifest and values overlays for one operation.

    Args:
        spec: Release set specification

    Returns:
        Workspace describing the written files. Generated overlays come
        first, followed by the spec's existing values files.

    Raises:
        WorkspaceError: If the directory or a file cannot be written
    """
    working_directory = spec.working_directory
    ensure_directory(working_directory)

    manifest_path = os.path.abspath(
        os.path.join(working_directory, manifest_filename(spec.content, spec.enable_go_template))
    )
    _write(manifest_path, spec.content)

    generated = write_values_files(spec.values, working_directory)
    values_files = generated + list(spec.values_files)

    logger.debug(
        f"Materialized workspace: manifest={manifest_path} values_files={len(values_files)}"
    )

    return Workspace(
        working_directory=working_directory,
        manifest_path=manifest_path,
        values_files=values_files,
    )
