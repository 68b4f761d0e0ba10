"""
Host controller collaborator interfaces and schema keys.

The infrastructure-as-code host exposes resource fields through a lookup
capability and, during planning, a diff capability. Helmdrive reads and
marks fields only through these protocols.
"""

from typing import Any, Protocol, Tuple

# Release set schema keys
KEY_CONTENT = "content"
KEY_PATH = "path"
KEY_VALUES = "values"
KEY_VALUES_FILES = "values_files"
KEY_WORKING_DIRECTORY = "working_directory"
KEY_ENVIRONMENT = "environment"
KEY_ENVIRONMENT_VARIABLES = "environment_variables"
KEY_BIN = "bin"
KEY_HELM_BIN = "helm_binary"
KEY_SELECTOR = "selector"
KEY_SELECTORS = "selectors"
KEY_CONCURRENCY = "concurrency"
KEY_ENABLE_GO_TEMPLATE = "enable_go_template"
KEY_RELEASES_VALUES = "releases_values"
KEY_KUBECONFIG = "kubeconfig"

# Release schema keys
KEY_NAME = "name"
KEY_NAMESPACE = "namespace"
KEY_CHART = "chart"
KEY_VERSION = "version"
KEY_KUBECONTEXT = "kubecontext"

# Cluster access keys
KEY_AWS_REGION = "aws_region"
KEY_AWS_PROFILE = "aws_profile"
KEY_EKS_CLUSTER_NAME = "eks_cluster_name"
KEY_EKS_CLUSTER_REGION = "eks_cluster_region"
KEY_EKS_CLUSTER_ENDPOINT = "eks_cluster_endpoint"
KEY_EKS_CLUSTER_CA = "eks_cluster_ca"

# Derived outputs
KEY_DIFF_OUTPUT = "diff_output"
KEY_APPLY_OUTPUT = "apply_output"


class ResourceRead(Protocol):
    """Field lookup capability offered by the host."""

    def get(self, key: str) -> Any:
        ...

    def get_ok(self, key: str) -> Tuple[Any, bool]:
        ...

    def id(self) -> str:
        ...


class ResourceDiff(ResourceRead, Protocol):
    """Plan-time capability: change detection and marking fields computed."""

    def has_change(self, key: str) -> bool:
        ...

    def set_new(self, key: str, value: Any) -> None:
        ...

    def set_new_computed(self, key: str) -> None:
        ...


def get_string(d: ResourceRead, key: str) -> str:
    value = d.get(key)
    return "" if value is None else str(value)


def get_bool(d: ResourceRead, key: str) -> bool:
    return bool(d.get(key))


def get_int(d: ResourceRead, key: str) -> int:
    value = d.get(key)
    return int(value) if value not in (None, "") else 0
