"""Type definitions for generated resources and internal data structures."""
from __future__ import annotations

from typing import Any, Dict, List, Optional, TypedDict

# Basic Kubernetes types
K8sObject = Dict[str, Any]
K8sObjectList = List[K8sObject]


class ServicePort(TypedDict, total=False):
    """One entry of a Service's ``spec.ports`` list."""
    port: int
    targetPort: int
    protocol: str
    name: str


class ResourceCounts(TypedDict):
    """Counts of documents a working set produces, grouped by kind."""
    deployments: int
    daemonsets: int
    services: int
    ingresses: int
    namespaces: int
    configmaps: int
    secrets: int
    jobs: int
    cronjobs: int
    containers: int
    total: int


class GenerationResult(TypedDict):
    """Result of writing a generated bundle."""
    success: bool
    output_path: Optional[str]
    document_count: int
    size_bytes: int
    errors: List[str]


# Error types
class ComposerError(Exception):
    """Base exception for kube-composer operations."""


class GenerationError(ComposerError):
    """Building the resource object graph failed."""

    def __init__(self, message: str, kind: Optional[str] = None):
        super().__init__(message)
        self.kind = kind


class SerializationError(ComposerError):
    """A value could not be rendered, or rendered text is not valid YAML."""

    def __init__(self, message: str, text: Optional[str] = None):
        super().__init__(message)
        self.text = text


class WorkspaceError(ComposerError):
    """A working-set operation referenced an unknown or conflicting record."""

    def __init__(self, message: str, uid: Optional[str] = None):
        super().__init__(message)
        self.uid = uid


class SnapshotError(ComposerError):
    """A saved working-set file could not be read or written."""
    pass
