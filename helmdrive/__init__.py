"""
Helmdrive - Helmfile Release Set Execution Engine

Materializes release set specifications, drives helmfile and reconciles
its output for an infrastructure-as-code host.

Architecture:
- Each module is self-contained with clear interfaces
- Modules are completely replaceable
- No module knows the internals of another
- All communication through defined interfaces

Modules:
- api: Shared data models (spec, options, results)
- workspace: Content-addressed manifest and values files
- environment: Scoped process environment mutation
- executor: Binary and in-process helmfile execution
- credentials: Transient EKS kubeconfig provisioning
- reconcile: Diff/apply output staleness decisions
- release_set: Glue between the host resource and the executor
"""

__version__ = "1.0.0"
