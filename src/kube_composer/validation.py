"""Advisory checks and resource counts for a working set.

Nothing here gates generation: incomplete records still render with
defaults, these issues only tell the user what is missing.
"""
from __future__ import annotations

import logging
from typing import List, Sequence

from .builders import custom_namespaces
from .constants import CONCURRENCY_POLICIES, PATH_TYPES, RESTART_POLICIES, SERVICE_TYPES, VOLUME_TYPES
from .models import Container, CronJobConfig, DaemonSetConfig, DeploymentConfig, JobConfig, WorkloadConfig
from .types import ResourceCounts
from .workspace import Workspace

logger = logging.getLogger(__name__)


def _container_issues(prefix: str, containers: Sequence[Container]) -> List[str]:
    issues = []
    if not containers:
        issues.append(f"{prefix}: At least one container is required")
    for index, container in enumerate(containers, start=1):
        if not container.name:
            issues.append(f"{prefix}, Container {index}: Name is required")
        if not container.image:
            issues.append(f"{prefix}, Container {index}: Image is required")
    return issues


def _workload_issues(prefix: str, workload: WorkloadConfig) -> List[str]:
    issues = []
    if workload.service_type not in SERVICE_TYPES:
        issues.append(f"{prefix}: Unknown service type {workload.service_type}")
    for volume in workload.volumes:
        if volume.type not in VOLUME_TYPES:
            issues.append(f"{prefix}: Volume {volume.name} has unknown type {volume.type}")
    for index, rule in enumerate(workload.ingress.rules, start=1):
        if rule.path_type not in PATH_TYPES:
            issues.append(f"{prefix}, Ingress rule {index}: Unknown path type {rule.path_type}")
    return issues


def validate_deployments(deployments: Sequence[DeploymentConfig]) -> List[str]:
    issues = []
    for index, deployment in enumerate(deployments, start=1):
        prefix = f"Deployment {index}"
        if not deployment.app_name:
            issues.append(f"{prefix}: Application name is required")
        # Records saved before containers existed render through the legacy fields
        if deployment.containers or deployment.legacy is None:
            issues.extend(_container_issues(prefix, deployment.containers))
        if deployment.port <= 0:
            issues.append(f"{prefix}: Service port must be greater than 0")
        if deployment.target_port <= 0:
            issues.append(f"{prefix}: Target port must be greater than 0")
        if deployment.replicas <= 0:
            issues.append(f"{prefix}: Replicas must be greater than 0")
        issues.extend(_workload_issues(prefix, deployment))
    return issues


def validate_daemonsets(daemonsets: Sequence[DaemonSetConfig]) -> List[str]:
    issues = []
    for index, daemonset in enumerate(daemonsets, start=1):
        prefix = f"DaemonSet {index}"
        if not daemonset.app_name:
            issues.append(f"{prefix}: Application name is required")
        if daemonset.containers or daemonset.legacy is None:
            issues.extend(_container_issues(prefix, daemonset.containers))
        issues.extend(_workload_issues(prefix, daemonset))
    return issues


def validate_jobs(jobs: Sequence[JobConfig], cronjobs: Sequence[CronJobConfig] = ()) -> List[str]:
    issues = []
    for index, job in enumerate(jobs, start=1):
        prefix = f"Job {index}"
        if not job.name:
            issues.append(f"{prefix}: Name is required")
        if not job.namespace:
            issues.append(f"{prefix}: Namespace is required")
        if job.restart_policy not in RESTART_POLICIES:
            issues.append(f"{prefix}: Restart policy must be one of {', '.join(RESTART_POLICIES)}")
        issues.extend(_container_issues(prefix, job.containers))
    for index, cronjob in enumerate(cronjobs, start=1):
        prefix = f"CronJob {index}"
        if not cronjob.name:
            issues.append(f"{prefix}: Name is required")
        if not cronjob.schedule:
            issues.append(f"{prefix}: Schedule is required")
        if cronjob.concurrency_policy and cronjob.concurrency_policy not in CONCURRENCY_POLICIES:
            issues.append(f"{prefix}: Unknown concurrency policy {cronjob.concurrency_policy}")
        issues.extend(_container_issues(prefix, cronjob.job_template.containers))
    return issues


def validate_workspace(workspace: Workspace) -> List[str]:
    """
    Collect advisory issues for every workload in a working set.

    Args:
        workspace: Working set to inspect

    Returns:
        Human-readable issue strings; empty when everything is filled in
    """
    issues = validate_deployments(workspace.deployments)
    issues.extend(validate_daemonsets(workspace.daemonsets))
    issues.extend(validate_jobs(workspace.jobs, workspace.cronjobs))

    if issues:
        logger.warning("Working set has %d validation issue(s)", len(issues))
    return issues


def count_resources(workspace: Workspace) -> ResourceCounts:
    """Count the documents a working set renders to, grouped by kind."""
    deployments = [d for d in workspace.deployments if d.app_name]
    daemonsets = [d for d in workspace.daemonsets if d.app_name]

    ingresses = sum(1 for d in deployments if d.ingress.enabled and d.ingress.rules)
    daemonset_services = sum(1 for d in daemonsets if d.service_enabled)
    embedded_configmaps = sum(len(w.config_maps) for w in [*deployments, *daemonsets])
    embedded_secrets = sum(len(w.secrets) for w in [*deployments, *daemonsets])
    containers = sum(len(w.containers) or 1 for w in [*deployments, *daemonsets])

    counts = ResourceCounts(
        deployments=len(deployments),
        daemonsets=len(daemonsets),
        services=len(deployments) + daemonset_services,
        ingresses=ingresses,
        namespaces=len(custom_namespaces(workspace.namespaces)),
        configmaps=len(workspace.config_maps) + embedded_configmaps,
        secrets=len(workspace.secrets) + embedded_secrets,
        jobs=len(workspace.jobs),
        cronjobs=len(workspace.cronjobs),
        containers=containers,
        total=0,
    )
    counts["total"] = sum(
        counts[key]
        for key in ("deployments", "daemonsets", "services", "ingresses", "namespaces",
                    "configmaps", "secrets", "jobs", "cronjobs")
    )
    return counts
