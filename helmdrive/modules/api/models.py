"""
Helmdrive shared data models.

These models define the structure of all data passed between
components in the Helmdrive system.
"""

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Enums


class Operation(str, Enum):
    """helmfile subcommands driven by the executors."""

    APPLY = "apply"
    DIFF = "diff"
    TEMPLATE = "template"
    DESTROY = "destroy"
    BUILD = "build"
    VERSION = "version"


class ExecutorMode(str, Enum):
    """Execution strategy used to drive helmfile."""

    BINARY = "binary"
    LIBRARY = "library"


# Host input


class DeploymentSpec(BaseModel):
    """Declarative description of a helmfile release set."""

    model_config = ConfigDict(extra="forbid")

    content: str = Field(default="", description="helmfile.yaml content")
    values: List[str] = Field(
        default_factory=list,
        description="State values overlays, later entries override earlier ones",
    )
    values_files: List[str] = Field(
        default_factory=list, description="Existing state values files to pass through"
    )
    working_directory: str = Field(default="", description="Directory helmfile runs in")
    selector: Dict[str, str] = Field(default_factory=dict, description="Label selector k=v")
    selectors: List[str] = Field(
        default_factory=list, description="Raw label selectors (OR logic)"
    )
    concurrency: int = Field(default=0, ge=0, description="Concurrent helm operations, 0 = default")
    environment: str = Field(default="", description="helmfile environment name")
    environment_variables: Dict[str, str] = Field(default_factory=dict)
    release_values: Dict[str, str] = Field(
        default_factory=dict, description="Values passed as --set k=v"
    )
    bin: str = Field(default="", description="Path to the helmfile binary")
    helm_bin: str = Field(default="", description="Path to the helm binary")
    enable_go_template: bool = Field(
        default=False, description="Render the manifest as a .yaml.gotmpl template"
    )

    # Cluster access: either an explicit kubeconfig or an EKS cluster reference
    kubeconfig: str = Field(default="", description="Explicit kubeconfig path")
    eks_cluster_name: str = ""
    eks_cluster_region: str = ""
    aws_region: str = ""
    aws_profile: str = ""
    eks_cluster_endpoint: str = ""
    eks_cluster_ca: str = ""

    @field_validator("environment_variables", mode="before")
    @classmethod
    def stringify_environment(cls, v):
        """Environment values arrive from the host as loosely typed scalars."""
        if v is None:
            return {}
        return {str(key): "" if value is None else str(value) for key, value in v.items()}

    @property
    def has_cluster_reference(self) -> bool:
        """Check if an EKS cluster reference is configured."""
        return bool(self.eks_cluster_name)

    @property
    def eks_region(self) -> str:
        """Cluster-specific region, falling back to the general AWS region."""
        return self.eks_cluster_region or self.aws_region


class Workspace(BaseModel):
    """Files materialized for one operation."""

    model_config = ConfigDict(frozen=True)

    working_directory: str
    manifest_path: str
    values_files: List[str] = Field(default_factory=list)


def describe_selector(selector: Optional[Dict[str, str]]) -> List[str]:
    """Render a selector map as sorted ``k=v`` strings."""
    if not selector:
        return []
    return [f"{key}={value}" for key, value in sorted(selector.items())]


__all__ = [
    "DeploymentSpec",
    "ExecutorMode",
    "Operation",
    "Workspace",
    "describe_selector",
]
