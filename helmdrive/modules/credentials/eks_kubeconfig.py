"""
Transient kubeconfig provisioning for EKS clusters.

When a release set names an EKS cluster instead of a kubeconfig path, the
cluster endpoint and CA are looked up (or taken from manual settings), a
kubeconfig using `aws eks get-token` exec authentication is rendered and
written to an owner-only file, and that file is removed again when the
owning resource is torn down.

File names carry a random suffix, so two resources pointing at the same
cluster name get distinct files rather than a conflict.
"""

import logging
import os
import secrets
import tempfile
from typing import Any, List, Optional

import boto3
import yaml
from botocore.config import Config as BotocoreConfig
from botocore.exceptions import BotoCoreError, ClientError
from pydantic import BaseModel, ConfigDict, Field

from helmdrive.config.provider import EKSConfig
from helmdrive.modules.api.errors import (
    ClusterLookupError,
    ClusterMissingFieldError,
    ClusterNotFoundError,
    ConfigurationError,
    WorkspaceError,
)
from helmdrive.modules.api.models import DeploymentSpec

logger = logging.getLogger("helmdrive.credentials")

KUBECONFIG_PREFIX = ".helmdrive-kubeconfig"
EXEC_API_VERSION = "client.authentication.k8s.io/v1beta1"
EXEC_COMMAND = "aws"
PROFILE_ENV = "AWS_PROFILE"


class EKSClusterConfig(BaseModel):
    """Everything needed to render a kubeconfig for one EKS cluster."""

    cluster_name: str
    region: str = ""
    endpoint: str = ""
    ca: str = ""
    aws_profile: str = ""


# Kubeconfig document


class _Document(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ClusterDetail(_Document):
    server: str
    certificate_authority_data: str = Field(alias="certificate-authority-data")


class ClusterEntry(_Document):
    name: str
    cluster: ClusterDetail


class ContextDetail(_Document):
    cluster: str
    user: str


class ContextEntry(_Document):
    name: str
    context: ContextDetail


class ExecEnvVar(_Document):
    name: str
    value: str


class ExecConfig(_Document):
    api_version: str = Field(alias="apiVersion")
    command: str
    args: List[str]
    env: Optional[List[ExecEnvVar]] = None


class UserDetail(_Document):
    exec: ExecConfig


class UserEntry(_Document):
    name: str
    user: UserDetail


class KubeconfigData(_Document):
    api_version: str = Field(default="v1", alias="apiVersion")
    kind: str = "Config"
    clusters: List[ClusterEntry]
    contexts: List[ContextEntry]
    current_context: str = Field(alias="current-context")
    users: List[UserEntry]


# Configuration checks


def get_eks_region(spec: DeploymentSpec, default_region: str = "") -> str:
    """Region for EKS operations: eks_cluster_region, then aws_region, then the default."""
    return spec.eks_region or default_region


def validate_eks_configuration(spec: DeploymentSpec, default_region: str = "") -> None:
    """
    Check cluster access settings before any I/O.

    Raises:
        ConfigurationError: If neither access method is given, the region
            cannot be resolved, or only one of endpoint/CA is set
    """
    if spec.kubeconfig:
        return

    if not spec.eks_cluster_name:
        raise ConfigurationError(
            "either 'kubeconfig' or 'eks_cluster_name' must be provided"
        )

    if not get_eks_region(spec, default_region):
        raise ConfigurationError(
            "when using eks_cluster_name, either eks_cluster_region or aws_region must be provided"
        )

    if bool(spec.eks_cluster_endpoint) != bool(spec.eks_cluster_ca):
        raise ConfigurationError(
            "eks_cluster_endpoint and eks_cluster_ca must be provided together"
        )


# Discover


def new_eks_client(region: str, profile: str = "", eks_config: Optional[EKSConfig] = None):
    """Create an EKS client with the configured retry policy."""
    retries = {"max_attempts": 3, "mode": "standard"}
    if eks_config is not None:
        retries = {"max_attempts": eks_config.max_attempts, "mode": eks_config.retry_mode}

    session = boto3.session.Session(profile_name=profile or None, region_name=region)
    return session.client("eks", config=BotocoreConfig(retries=retries))


def fetch_eks_cluster_info(
    cluster_name: str,
    region: str,
    profile: str = "",
    client: Any = None,
    eks_config: Optional[EKSConfig] = None,
) -> EKSClusterConfig:
    """
    Look up the endpoint and CA of an EKS cluster.

    Args:
        cluster_name: EKS cluster name
        region: AWS region of the cluster
        profile: AWS profile for the lookup session
        client: Pre-built EKS client (created from profile/region otherwise)
        eks_config: Retry policy for the created client

    Returns:
        EKSClusterConfig with endpoint and CA populated

    Raises:
        ClusterNotFoundError: The cluster does not exist
        ClusterMissingFieldError: Endpoint or CA data is absent
        ClusterLookupError: Any other API or transport failure
    """
    logger.info(f"Fetching EKS cluster info for cluster: {cluster_name} in region: {region}")

    try:
        if client is None:
            client = new_eks_client(region, profile, eks_config)
        response = client.describe_cluster(name=cluster_name)
    except ClientError as e:
        code = e.response.get("Error", {}).get("Code", "")
        if code == "ResourceNotFoundException":
            raise ClusterNotFoundError(
                cluster_name, f"not found in region {region}", cause=e
            ) from e
        raise ClusterLookupError(cluster_name, f"describing cluster failed: {e}", cause=e) from e
    except BotoCoreError as e:
        raise ClusterLookupError(cluster_name, f"describing cluster failed: {e}", cause=e) from e

    cluster = (response or {}).get("cluster")
    if not cluster:
        raise ClusterNotFoundError(cluster_name, f"not found in region {region}")

    endpoint = cluster.get("endpoint")
    if not endpoint:
        raise ClusterMissingFieldError(cluster_name, "endpoint")

    ca = (cluster.get("certificateAuthority") or {}).get("data")
    if not ca:
        raise ClusterMissingFieldError(cluster_name, "certificate authority data")

    logger.info(f"Successfully fetched EKS cluster info: endpoint={endpoint}")

    return EKSClusterConfig(
        cluster_name=cluster_name,
        region=region,
        endpoint=endpoint,
        ca=ca,
        aws_profile=profile,
    )


# Render


def build_kubeconfig(config: EKSClusterConfig) -> KubeconfigData:
    """Kubeconfig with one cluster, one context and one exec-authenticated user."""
    args = ["eks", "get-token", "--cluster-name", config.cluster_name]
    if config.region:
        args += ["--region", config.region]

    env = None
    if config.aws_profile:
        env = [ExecEnvVar(name=PROFILE_ENV, value=config.aws_profile)]

    name = config.cluster_name
    return KubeconfigData(
        clusters=[
            ClusterEntry(
                name=name,
                cluster=ClusterDetail(server=config.endpoint, certificate_authority_data=config.ca),
            )
        ],
        contexts=[ContextEntry(name=name, context=ContextDetail(cluster=name, user=name))],
        current_context=name,
        users=[
            UserEntry(
                name=name,
                user=UserDetail(
                    exec=ExecConfig(
                        api_version=EXEC_API_VERSION,
                        command=EXEC_COMMAND,
                        args=args,
                        env=env,
                    )
                ),
            )
        ],
    )


def generate_kubeconfig_yaml(config: EKSClusterConfig) -> str:
    """Render the kubeconfig document as YAML."""
    logger.debug(f"Generating kubeconfig YAML for cluster: {config.cluster_name}")

    document = build_kubeconfig(config).model_dump(by_alias=True, exclude_none=True)
    rendered = yaml.safe_dump(document, sort_keys=False, default_flow_style=False)

    logger.debug(f"Generated kubeconfig YAML ({len(rendered)} bytes)")
    return rendered


# Persist / cleanup


def write_temporary_kubeconfig(kubeconfig_yaml: str, working_dir: str, cluster_name: str) -> str:
    """
    Write the kubeconfig to a uniquely named owner-only file.

    Args:
        kubeconfig_yaml: Rendered kubeconfig
        working_dir: Target directory; the system temp dir when empty or "."
        cluster_name: Embedded in the filename

    Returns:
        Path of the written file

    Raises:
        WorkspaceError: If the file cannot be written
    """
    directory = working_dir if working_dir and working_dir != "." else tempfile.gettempdir()
    filename = f"{KUBECONFIG_PREFIX}-{cluster_name}-{secrets.token_hex(4)}"
    path = os.path.join(directory, filename)

    try:
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(kubeconfig_yaml)
    except OSError as e:
        raise WorkspaceError(f"writing kubeconfig failed ({e})", path) from e

    logger.info(f"Generated temporary kubeconfig at: {path}")
    return path


def cleanup_kubeconfig(path: Optional[str]) -> Optional[OSError]:
    """
    Remove a generated kubeconfig, best effort.

    A missing file or empty path is not an error. Other failures are
    logged and returned, never raised, so teardown is never blocked.
    """
    if not path:
        return None

    try:
        os.remove(path)
    except FileNotFoundError:
        return None
    except OSError as e:
        logger.warning(f"Failed to cleanup kubeconfig at {path}: {e}")
        return e

    logger.info(f"Cleaned up temporary kubeconfig at: {path}")
    return None


def provision_kubeconfig(
    spec: DeploymentSpec,
    eks_config: Optional[EKSConfig] = None,
    client: Any = None,
) -> str:
    """
    Produce a kubeconfig file for the spec's EKS cluster reference.

    Manual endpoint and CA skip the DescribeCluster lookup.

    Returns:
        Path of the generated kubeconfig
    """
    default_region = eks_config.default_region if eks_config else ""
    default_profile = eks_config.default_profile if eks_config else ""

    validate_eks_configuration(spec, default_region)
    if not spec.eks_cluster_name:
        raise ConfigurationError("no EKS cluster reference to provision a kubeconfig for")

    region = get_eks_region(spec, default_region)
    profile = spec.aws_profile or default_profile

    if spec.eks_cluster_endpoint and spec.eks_cluster_ca:
        logger.info(f"Using manually configured endpoint for EKS cluster {spec.eks_cluster_name}")
        cluster = EKSClusterConfig(
            cluster_name=spec.eks_cluster_name,
            region=region,
            endpoint=spec.eks_cluster_endpoint,
            ca=spec.eks_cluster_ca,
            aws_profile=profile,
        )
    else:
        cluster = fetch_eks_cluster_info(
            spec.eks_cluster_name, region, profile, client=client, eks_config=eks_config
        )

    return write_temporary_kubeconfig(
        generate_kubeconfig_yaml(cluster), spec.working_directory, spec.eks_cluster_name
    )
