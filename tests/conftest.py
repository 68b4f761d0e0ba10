"""
Shared pytest fixtures for Helmdrive tests.

This module provides common fixtures including:
- HelmfileMocker: Mock helmfile child processes with canned responses
- FakeResource: In-memory stand-in for the host field-lookup/diff capability
- EKS client mocks for cluster lookups
"""

import os
import subprocess
import sys
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Pattern, Set, Tuple, Union
from unittest.mock import MagicMock, patch

import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from helmdrive.config import StaticConfigProvider


# =============================================================================
# Helmfile Mocking Infrastructure
# =============================================================================

@dataclass
class HelmfileResponse:
    """Represents a mocked helmfile process outcome."""
    output: str = ""
    returncode: int = 0
    # Never finishes on its own; only kill() ends it
    hang: bool = False


@dataclass
class HelmfileCall:
    """Record of a helmfile invocation made during testing."""
    command: List[str]
    full_command_str: str
    cwd: Optional[str] = None
    env: Dict[str, str] = field(default_factory=dict)
    matched_pattern: Optional[str] = None
    response: Optional[HelmfileResponse] = None


class FakeHelmfileProcess:
    """Minimal subprocess.Popen stand-in driven by a HelmfileResponse."""

    def __init__(self, response: HelmfileResponse, pid: int = 4242):
        self.response = response
        self.pid = pid
        self.returncode = None
        self.killed = False

    def communicate(self, timeout: Optional[float] = None) -> Tuple[str, None]:
        if self.response.hang and not self.killed:
            time.sleep(min(timeout or 0, 0.01))
            raise subprocess.TimeoutExpired(cmd="helmfile", timeout=timeout)

        self.returncode = -9 if self.killed else self.response.returncode
        return self.response.output, None

    def kill(self):
        self.killed = True


class HelmfileMocker:
    """
    Mock helmfile child processes with pattern-matched responses.

    This allows testing executor behavior without a helmfile binary or a
    Kubernetes cluster by intercepting subprocess.Popen calls. Patterns are
    matched against the arguments after the binary name, which always
    start with the subcommand.

    Usage:
        def test_diff(helmfile_mocker):
            helmfile_mocker.register("diff", HelmfileResponse(
                output="default, web, Deployment (apps) has changed:",
                returncode=2,
            ))

            result = BinaryExecutor().diff(DiffOptions(detailed_exitcode=True))

            assert helmfile_mocker.was_called_with("diff --no-color")
    """

    def __init__(self):
        self._responses: List[Tuple[Union[str, Pattern], HelmfileResponse, int]] = []
        self._call_history: List[HelmfileCall] = []
        self._default_response = HelmfileResponse(
            output="Error: mock not configured for this command",
            returncode=1
        )
        self.processes: List[FakeHelmfileProcess] = []

    def register(
        self,
        pattern: Union[str, Pattern],
        response: HelmfileResponse,
        priority: int = 0
    ) -> "HelmfileMocker":
        """
        Register a response for commands matching the pattern.

        Args:
            pattern: String (matched against the start of the arguments,
                so "diff" never matches "apply --skip-diff-on-install")
                or regex pattern searched anywhere
            response: HelmfileResponse to return when matched
            priority: Higher priority patterns are checked first

        Returns:
            self for chaining
        """
        self._responses.append((pattern, response, priority))
        self._responses.sort(key=lambda x: x[2], reverse=True)
        return self

    def register_scenario(self, scenario_name: str) -> "HelmfileMocker":
        """Register all responses for a named scenario."""
        from fixtures.helmfile_scenarios import SCENARIOS

        if scenario_name not in SCENARIOS:
            raise ValueError(
                f"Unknown scenario: {scenario_name}. "
                f"Available: {list(SCENARIOS.keys())}"
            )

        for pattern, response in SCENARIOS[scenario_name].items():
            self.register(pattern, response)

        return self

    def set_default_response(self, response: HelmfileResponse) -> "HelmfileMocker":
        """Set the default response for unmatched commands."""
        self._default_response = response
        return self

    def mock_popen(self, cmd: List[str], cwd=None, env=None, **kwargs) -> FakeHelmfileProcess:
        """
        Mock implementation of subprocess.Popen for helmfile commands.

        This method is used as a side_effect for patching subprocess.Popen.
        """
        args = " ".join(cmd[1:])
        matched_pattern = None
        response = self._default_response

        for pattern, resp, _ in self._responses:
            if isinstance(pattern, str):
                if args.startswith(pattern):
                    matched_pattern = pattern
                    response = resp
                    break
            elif pattern.search(args):
                matched_pattern = pattern.pattern
                response = resp
                break

        self._call_history.append(HelmfileCall(
            command=list(cmd),
            full_command_str=" ".join(cmd),
            cwd=cwd,
            env=dict(env or {}),
            matched_pattern=matched_pattern,
            response=response,
        ))

        process = FakeHelmfileProcess(response)
        self.processes.append(process)
        return process

    @property
    def calls(self) -> List[HelmfileCall]:
        """Get all helmfile calls made during the test."""
        return self._call_history

    @property
    def call_count(self) -> int:
        return len(self._call_history)

    @property
    def last_call(self) -> HelmfileCall:
        return self._call_history[-1]

    def was_called_with(self, pattern: str) -> bool:
        """Check if any call contained the given pattern."""
        return any(pattern in call.full_command_str for call in self._call_history)

    def get_calls_matching(self, pattern: str) -> List[HelmfileCall]:
        return [c for c in self._call_history if pattern in c.full_command_str]

    def reset(self):
        """Clear call history (but keep registered responses)."""
        self._call_history = []
        self.processes = []


@pytest.fixture
def helmfile_mocker():
    """
    Fixture that provides a HelmfileMocker with subprocess.Popen patched.

    Usage:
        def test_something(helmfile_mocker):
            helmfile_mocker.register("apply", HelmfileResponse(output="..."))
            # Your test code that runs helmfile
            assert helmfile_mocker.was_called_with("apply")
    """
    mocker = HelmfileMocker()
    with patch("subprocess.Popen", side_effect=mocker.mock_popen):
        yield mocker


@pytest.fixture
def missing_helmfile():
    """subprocess.Popen behaving as if the helmfile binary does not exist."""
    with patch("subprocess.Popen", side_effect=FileNotFoundError("helmfile")) as popen:
        yield popen


# =============================================================================
# Host Resource Infrastructure
# =============================================================================

class FakeResource:
    """
    In-memory host resource implementing the lookup and diff capabilities.

    Records every field the code under test sets or marks as computed.
    """

    def __init__(self, data: Optional[Dict[str, Any]] = None, changed: Optional[Set[str]] = None,
                 resource_id: str = "release-set-1"):
        self.data = dict(data or {})
        self.changed = set(changed or ())
        self.new_values: Dict[str, Any] = {}
        self.computed: List[str] = []
        self._id = resource_id

    def get(self, key: str) -> Any:
        return self.data.get(key)

    def get_ok(self, key: str):
        return self.data.get(key), key in self.data

    def id(self) -> str:
        return self._id

    def has_change(self, key: str) -> bool:
        return key in self.changed

    def set_new(self, key: str, value: Any) -> None:
        self.new_values[key] = value

    def set_new_computed(self, key: str) -> None:
        self.computed.append(key)


@pytest.fixture
def fake_resource():
    """Factory for FakeResource instances."""
    return FakeResource


# =============================================================================
# EKS Mocking Infrastructure
# =============================================================================

def describe_cluster_response(
    name: str = "test-cluster",
    endpoint: Optional[str] = "https://ABCDEF.gr7.us-west-2.eks.amazonaws.com",
    ca: Optional[str] = "LS0tLS1CRUdJTiBDRVJUSUZJQ0FURS0tLS0t",
) -> Dict[str, Any]:
    """Shape of a DescribeCluster response."""
    cluster: Dict[str, Any] = {"name": name, "status": "ACTIVE"}
    if endpoint is not None:
        cluster["endpoint"] = endpoint
    if ca is not None:
        cluster["certificateAuthority"] = {"data": ca}
    return {"cluster": cluster}


@pytest.fixture
def eks_client():
    """EKS client mock answering DescribeCluster for test-cluster."""
    client = MagicMock()
    client.describe_cluster = MagicMock(return_value=describe_cluster_response())
    return client


@pytest.fixture
def binary_config_provider():
    """Static configuration selecting the binary executor."""
    return StaticConfigProvider.binary("helmfile")


@pytest.fixture
def clean_environment():
    """Remove test variables from os.environ before and after a test."""
    keys = [k for k in os.environ if k.startswith("HELMDRIVE_TEST_")]
    for key in keys:
        del os.environ[key]
    yield
    for key in [k for k in os.environ if k.startswith("HELMDRIVE_TEST_")]:
        del os.environ[key]


# =============================================================================
# Test Markers Configuration
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "helmfile_mock: Tests using mocked helmfile child processes"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests across several modules"
    )
    config.addinivalue_line(
        "markers", "slow: Tests that take a long time to run"
    )
