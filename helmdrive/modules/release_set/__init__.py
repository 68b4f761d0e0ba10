"""
Release Set Module - Black Box Interface

Purpose: Run helmfile operations for a host-managed release set resource
Interface: ReleaseSetRunner.apply/diff/template/destroy/build/version,
validate_configuration(), cleanup(), diff_release_set()
Hidden: Workspace preparation, kubeconfig resolution, option defaults
"""

from .release_set import (
    ReleaseSetRunner,
    build_apply_options,
    build_build_options,
    build_destroy_options,
    build_diff_options,
    build_template_options,
    diff_release_set,
    spec_from_resource,
    truncate_diff,
)

__all__ = [
    "ReleaseSetRunner",
    "build_apply_options",
    "build_build_options",
    "build_destroy_options",
    "build_diff_options",
    "build_template_options",
    "diff_release_set",
    "spec_from_resource",
    "truncate_diff",
]
