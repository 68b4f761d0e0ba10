"""Per-operation options accepted by every HelmfileExecutor."""

from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass
class BaseOptions:
    """Options common to all helmfile operations."""

    # Path to helmfile.yaml or a directory containing it
    file_or_dir: str = ""
    working_directory: str = ""
    kubeconfig: str = ""
    kube_context: str = ""
    namespace: str = ""
    environment: str = ""
    selector: Dict[str, str] = field(default_factory=dict)
    selectors: List[str] = field(default_factory=list)
    values_files: List[str] = field(default_factory=list)
    environment_variables: Dict[str, str] = field(default_factory=dict)
    helm_binary: str = ""
    helmfile_binary: str = ""
    enable_go_template: bool = False
    timeout_seconds: Optional[int] = None


@dataclass
class ApplyOptions(BaseOptions):
    concurrency: int = 0
    release_values: Dict[str, str] = field(default_factory=dict)
    # Skips the implicit diff on first install (helmfile >= 0.136.0)
    skip_diff_on_install: bool = False
    suppress_secrets: bool = False


@dataclass
class DiffOptions(BaseOptions):
    concurrency: int = 0
    release_values: Dict[str, str] = field(default_factory=dict)
    detailed_exitcode: bool = False
    suppress_secrets: bool = False
    # Lines of context around changes, 0 = helmfile default
    context: int = 0
    max_diff_output_len: int = 0


@dataclass
class TemplateOptions(BaseOptions):
    concurrency: int = 0
    include_crds: bool = False
    output_dir: str = ""
    output_dir_template: str = ""


@dataclass
class DestroyOptions(BaseOptions):
    concurrency: int = 0


@dataclass
class BuildOptions(BaseOptions):
    # Embeds values inline (helmfile >= 0.126.0)
    embed_values: bool = False
