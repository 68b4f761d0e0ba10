"""
Credentials Module - Black Box Interface

Purpose: Provision and remove transient kubeconfig files for EKS clusters
Interface: provision_kubeconfig(), cleanup_kubeconfig(), validate_eks_configuration()
Hidden: DescribeCluster lookup, kubeconfig rendering, file naming and permissions
"""

from .eks_kubeconfig import (
    EKSClusterConfig,
    KubeconfigData,
    cleanup_kubeconfig,
    fetch_eks_cluster_info,
    generate_kubeconfig_yaml,
    get_eks_region,
    provision_kubeconfig,
    validate_eks_configuration,
    write_temporary_kubeconfig,
)

__all__ = [
    "EKSClusterConfig",
    "KubeconfigData",
    "cleanup_kubeconfig",
    "fetch_eks_cluster_info",
    "generate_kubeconfig_yaml",
    "get_eks_region",
    "provision_kubeconfig",
    "validate_eks_configuration",
    "write_temporary_kubeconfig",
]
