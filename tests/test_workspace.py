"""
Unit tests for the Workspace Module.

Tests cover:
- Content-addressed manifest and values file naming
- Template extension selection
- Values file ordering and absolute paths
- Directory creation and write failures
"""

import hashlib
import os
import sys

import pytest

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from helmdrive.modules.api.errors import WorkspaceError
from helmdrive.modules.api.models import DeploymentSpec
from helmdrive.modules.workspace import (
    content_hash,
    manifest_filename,
    materialize,
    values_filename,
    write_values_files,
)

MANIFEST = """releases:
- name: web
  chart: bitnami/nginx
"""


class TestNaming:
    """Tests for deterministic file names."""

    def test_content_hash_is_sha256(self):
        expected = hashlib.sha256(MANIFEST.encode("utf-8")).hexdigest()
        assert content_hash(MANIFEST) == expected

    def test_plain_manifest_extension(self):
        name = manifest_filename(MANIFEST)
        assert name == f"helmfile-{content_hash(MANIFEST)}.yaml"

    def test_template_manifest_extension(self):
        name = manifest_filename(MANIFEST, enable_go_template=True)
        assert name.endswith(".yaml.gotmpl")

    def test_values_filename(self):
        assert values_filename("a: 1") == f"temp.values-{content_hash('a: 1')}.yaml"

    def test_distinct_content_distinct_names(self):
        blobs = ["a: 1", "a: 2", "b: 1", "", " "]
        names = {values_filename(b) for b in blobs}
        assert len(names) == len(blobs)


class TestMaterialize:
    """Tests for writing the workspace to disk."""

    def test_same_content_same_path(self, tmp_path):
        """Test that materializing twice yields the same manifest path."""
        spec = DeploymentSpec(content=MANIFEST, working_directory=str(tmp_path))

        first = materialize(spec)
        second = materialize(spec)

        assert first.manifest_path == second.manifest_path
        with open(first.manifest_path, encoding="utf-8") as f:
            assert f.read() == MANIFEST

    def test_distinct_content_never_collides(self, tmp_path):
        """Test that different manifests land in different files."""
        wd = str(tmp_path)
        first = materialize(DeploymentSpec(content=MANIFEST, working_directory=wd))
        second = materialize(DeploymentSpec(content=MANIFEST + "# v2\n", working_directory=wd))

        assert first.manifest_path != second.manifest_path

    def test_values_order_and_passthrough(self, tmp_path):
        """Test generated overlays first, then existing values files."""
        spec = DeploymentSpec(
            content=MANIFEST,
            working_directory=str(tmp_path),
            values=["replicas: 1", "replicas: 3"],
            values_files=["existing.yaml"],
        )

        workspace = materialize(spec)

        assert len(workspace.values_files) == 3
        assert workspace.values_files[0].endswith(values_filename("replicas: 1"))
        assert workspace.values_files[1].endswith(values_filename("replicas: 3"))
        assert workspace.values_files[2] == "existing.yaml"

    def test_generated_values_paths_are_absolute(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / "relative").mkdir()

        paths = write_values_files(["a: 1"], "relative")

        assert os.path.isabs(paths[0])

    def test_manifest_path_is_absolute(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)

        workspace = materialize(DeploymentSpec(content=MANIFEST, working_directory="relative"))

        assert workspace.manifest_path == str(tmp_path / "relative" / manifest_filename(MANIFEST))

    def test_creates_missing_working_directory(self, tmp_path):
        wd = tmp_path / "nested" / "dir"

        workspace = materialize(DeploymentSpec(content=MANIFEST, working_directory=str(wd)))

        assert wd.is_dir()
        assert os.path.exists(workspace.manifest_path)

    def test_template_manifest_written_with_gotmpl(self, tmp_path):
        spec = DeploymentSpec(
            content="releases: {{ .Values.releases }}",
            working_directory=str(tmp_path),
            enable_go_template=True,
        )

        workspace = materialize(spec)

        assert workspace.manifest_path.endswith(".yaml.gotmpl")

    def test_unwritable_directory_raises(self, tmp_path):
        """Test that a path blocked by a regular file fails with its path."""
        blocker = tmp_path / "file"
        blocker.write_text("not a directory")
        wd = str(blocker / "sub")

        with pytest.raises(WorkspaceError) as exc_info:
            materialize(DeploymentSpec(content=MANIFEST, working_directory=wd))

        assert exc_info.value.path == wd
