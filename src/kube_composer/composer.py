"""Multi-resource composition into a single YAML bundle."""
from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from .builders import (
    build_configmap,
    build_cronjob,
    build_job,
    build_namespace,
    build_secret,
    build_workload_resources,
    custom_namespaces,
)
from .constants import DEFAULT_PROJECT_NAME, DOCUMENT_SEPARATOR, GENERATOR_NAME
from .models import (
    ConfigMap,
    CronJobConfig,
    DaemonSetConfig,
    DeploymentConfig,
    JobConfig,
    Namespace,
    ProjectSettings,
    Secret,
    WorkloadConfig,
)
from .serializer import render
from .types import ComposerError, GenerationError

logger = logging.getLogger(__name__)

WELCOME_BANNER = """# Welcome to Kube Composer!
# 
# This is a free Kubernetes YAML generator that helps you create
# production-ready deployment configurations without writing YAML manually.
#
# To get started:
# 1. Click "Project Settings" to configure your project name and global labels
# 2. Click "Add Deployment" to create your first deployment
# 3. Configure your application settings in the form
# 4. Watch as your YAML is generated in real-time
# 5. Download the complete YAML file when ready
#
# Features:
# - Project-wide settings and global labels
# - Visual deployment editor
# - Multi-container support
# - Multi-deployment support  
# - Real-time YAML generation
# - Architecture visualization
# - Resource validation
# - Production-ready output
# - ConfigMap and Secret management
# - DaemonSet support
#
# No registration required - start building now!

apiVersion: v1
kind: ConfigMap
metadata:
  name: getting-started
  namespace: default
  labels:
    app.kubernetes.io/name: getting-started
    project: {project}
    created-by: kube-composer
data:
  welcome: |
    Welcome to Kube Composer!
    Create your first deployment to see generated YAML here.
  docs: "Visit https://kubernetes.io/docs/ for Kubernetes documentation"
  repository: "https://github.com/same7ammar/kube-composer\""""

NEEDS_CONFIGURATION = """# Deployment Configuration Needed
#
# You have {count} {noun}{plural} but none have been properly configured yet.
# 
# To generate YAML:
# 1. Select a deployment from the sidebar
# 2. Click the edit button (⚙️) to configure it
# 3. Add at least an application name and container image
# 4. Your YAML will appear here automatically"""

SYSTEM_NAMESPACES_ONLY = """# Only system namespaces available
# Create custom namespaces to see their YAML configuration here

# Available system namespaces:
{listing}

# Example custom namespace:
apiVersion: v1
kind: Namespace
metadata:
  name: my-custom-namespace
  labels:
    environment: development
    team: backend
{project_line}  annotations:
    description: "Custom namespace for development environment"
    created-by: "kube-composer\""""

SYSTEM_NAMESPACES_NOTICE = """# Kubernetes Configuration
# Generated by Kube Composer
#
# Only system namespaces are defined, so there is nothing to generate yet.
# Add a deployment or a custom namespace to see its YAML here."""


def welcome_banner(settings: Optional[ProjectSettings] = None) -> str:
    """Fixed first-run text shown when the working set is empty."""
    return WELCOME_BANNER.format(project=settings.name if settings else DEFAULT_PROJECT_NAME)


def needs_configuration_message(count: int, noun: str = "deployment") -> str:
    return NEEDS_CONFIGURATION.format(count=count, noun=noun, plural="" if count == 1 else "s")


def _container_count(workload: WorkloadConfig) -> int:
    # A workload without containers renders one legacy container
    return len(workload.containers) or 1


def _project_header(settings: Optional[ProjectSettings]) -> List[str]:
    if settings is None:
        return []
    lines = [f"# Project: {settings.name}"]
    if settings.description:
        lines.append(f"# Description: {settings.description}")
    if settings.global_labels:
        lines.append(f"# Global Labels: {len(settings.global_labels)} defined")
    return lines


def _section(title: str, documents: Sequence[str], spacer: bool = False) -> List[str]:
    lines = [f"# === {title} ==="]
    for index, document in enumerate(documents):
        if index > 0:
            lines.append(DOCUMENT_SEPARATOR)
            if spacer:
                lines.append("")
        lines.append(document)
    return lines


def generate_deployment_yaml(config: DeploymentConfig, settings: Optional[ProjectSettings] = None) -> str:
    """Render one Deployment with its Service, Ingress and embedded data."""
    if not config.app_name:
        return "# Please configure your deployment first"
    resources = build_workload_resources(config, settings)
    return f"\n{DOCUMENT_SEPARATOR}\n".join(render(resource) for resource in resources)


def generate_daemonset_yaml(config: DaemonSetConfig, settings: Optional[ProjectSettings] = None) -> str:
    """Render one DaemonSet with its optional Service and embedded data."""
    if not config.app_name:
        return "# Please configure your daemonset first"
    resources = build_workload_resources(config, settings)
    return f"\n{DOCUMENT_SEPARATOR}\n".join(render(resource) for resource in resources)


def generate_namespace_yaml(namespaces: Sequence[Namespace], settings: Optional[ProjectSettings] = None) -> str:
    """Render only the custom namespaces, or guidance when there are none."""
    if not namespaces:
        return "# No namespaces configured"

    customs = custom_namespaces(list(namespaces))
    if not customs:
        return SYSTEM_NAMESPACES_ONLY.format(
            listing="\n".join(f"# - {namespace.name}" for namespace in namespaces),
            project_line=f"    project: {settings.name}\n" if settings else "",
        )

    lines = ["# Custom Kubernetes Namespaces", f"# Generated by {GENERATOR_NAME}"]
    if settings is not None:
        lines.append(f"# Project: {settings.name}")
    lines.append(f"# Total namespaces: {len(customs)}")
    lines.append("")
    for index, namespace in enumerate(customs):
        if index > 0:
            lines.append(DOCUMENT_SEPARATOR)
        lines.append(render(build_namespace(namespace, settings)))
    return "\n".join(lines)


def generate_configmap_yaml(config_maps: Sequence[ConfigMap], settings: Optional[ProjectSettings] = None) -> str:
    if not config_maps:
        return "# No ConfigMaps configured"

    lines = ["# Kubernetes ConfigMaps", f"# Generated by {GENERATOR_NAME}"]
    if settings is not None:
        lines.append(f"# Project: {settings.name}")
    lines.append(f"# Total ConfigMaps: {len(config_maps)}")
    lines.append("")
    for index, config_map in enumerate(config_maps):
        if index > 0:
            lines.append(DOCUMENT_SEPARATOR)
        lines.append(render(build_configmap(config_map, settings)))
    return "\n".join(lines)


def generate_secret_yaml(secrets: Sequence[Secret], settings: Optional[ProjectSettings] = None) -> str:
    if not secrets:
        return "# No Secrets configured"

    lines = ["# Kubernetes Secrets", f"# Generated by {GENERATOR_NAME}"]
    if settings is not None:
        lines.append(f"# Project: {settings.name}")
    lines.append(f"# Total Secrets: {len(secrets)}")
    lines.append("")
    for index, secret in enumerate(secrets):
        if index > 0:
            lines.append(DOCUMENT_SEPARATOR)
        lines.append(render(build_secret(secret, settings)))
    return "\n".join(lines)


def _compose(
    deployments: Sequence[DeploymentConfig],
    namespaces: Sequence[Namespace],
    config_maps: Sequence[ConfigMap],
    secrets: Sequence[Secret],
    settings: Optional[ProjectSettings],
    jobs: Sequence[JobConfig],
    cronjobs: Sequence[CronJobConfig],
    daemonsets: Sequence[DaemonSetConfig],
) -> str:
    if (
        not deployments
        and len(namespaces) <= 1
        and not config_maps
        and not secrets
        and not jobs
        and not cronjobs
        and not daemonsets
    ):
        return welcome_banner(settings)

    valid_deployments = [deployment for deployment in deployments if deployment.app_name]
    valid_daemonsets = [daemonset for daemonset in daemonsets if daemonset.app_name]
    customs = custom_namespaces(list(namespaces))

    has_other_output = bool(customs or config_maps or secrets or valid_daemonsets or jobs or cronjobs)
    if not valid_deployments and not has_other_output:
        if deployments:
            return needs_configuration_message(len(deployments))
        if daemonsets:
            return needs_configuration_message(len(daemonsets), "DaemonSet")
        return SYSTEM_NAMESPACES_NOTICE

    lines: List[str] = ["# Kubernetes Configuration", f"# Generated by {GENERATOR_NAME}"]
    lines.extend(_project_header(settings))
    if customs:
        lines.append(f"# Custom Namespaces: {len(customs)}")
    if config_maps:
        lines.append(f"# ConfigMaps: {len(config_maps)}")
    if secrets:
        lines.append(f"# Secrets: {len(secrets)}")
    if valid_deployments:
        lines.append(f"# Deployments: {len(valid_deployments)}")
        lines.append(f"# Total Containers: {sum(_container_count(d) for d in valid_deployments)}")
        ingress_count = sum(1 for d in valid_deployments if d.ingress.enabled)
        if ingress_count:
            lines.append(f"# Ingress Resources: {ingress_count}")
    if valid_daemonsets:
        lines.append(f"# DaemonSets: {len(valid_daemonsets)}")
        lines.append(f"# Total DaemonSet Containers: {sum(_container_count(d) for d in valid_daemonsets)}")
    if jobs:
        lines.append(f"# Jobs: {len(jobs)}")
    if cronjobs:
        lines.append(f"# CronJobs: {len(cronjobs)}")
    lines.append("")

    sections: List[List[str]] = []
    if customs:
        sections.append(_section("NAMESPACES", [render(build_namespace(ns, settings)) for ns in customs]))
    if config_maps:
        sections.append(_section("CONFIGMAPS", [render(build_configmap(cm, settings)) for cm in config_maps]))
    if secrets:
        sections.append(_section("SECRETS", [render(build_secret(secret, settings)) for secret in secrets]))
    if valid_daemonsets:
        sections.append(
            _section("DAEMONSETS", [generate_daemonset_yaml(daemonset, settings) for daemonset in valid_daemonsets])
        )
    if valid_deployments:
        section: List[str] = []
        if sections:
            section.append("# === DEPLOYMENTS ===")
        for index, deployment in enumerate(valid_deployments):
            if index > 0:
                section.extend([DOCUMENT_SEPARATOR, ""])
            if len(valid_deployments) > 1:
                section.append(f"# === {deployment.app_name.upper()} DEPLOYMENT ===")
                section.append(f"# Containers: {_container_count(deployment)}")
                if deployment.ingress.enabled:
                    section.append("# Ingress: Enabled")
            section.append(generate_deployment_yaml(deployment, settings))
        sections.append(section)
    if jobs:
        sections.append(_section("JOBS", [render(build_job(job, settings)) for job in jobs], spacer=True))
    if cronjobs:
        sections.append(
            _section("CRONJOBS", [render(build_cronjob(cronjob, settings)) for cronjob in cronjobs], spacer=True)
        )

    for index, section in enumerate(sections):
        if index > 0:
            lines.extend([DOCUMENT_SEPARATOR, ""])
        lines.extend(section)

    logger.debug(
        "Composed bundle: %d deployments, %d daemonsets, %d namespaces, %d configmaps, "
        "%d secrets, %d jobs, %d cronjobs",
        len(valid_deployments), len(valid_daemonsets), len(customs), len(config_maps),
        len(secrets), len(jobs), len(cronjobs),
    )
    return "\n".join(lines)


def compose_bundle(
    deployments: Sequence[DeploymentConfig],
    namespaces: Sequence[Namespace] = (),
    config_maps: Sequence[ConfigMap] = (),
    secrets: Sequence[Secret] = (),
    settings: Optional[ProjectSettings] = None,
    jobs: Optional[Sequence[JobConfig]] = None,
    cronjobs: Optional[Sequence[CronJobConfig]] = None,
    daemonsets: Optional[Sequence[DaemonSetConfig]] = None,
) -> str:
    """
    Render a whole working set as one multi-document YAML bundle.

    Sections are emitted in a fixed order (namespaces, configmaps, secrets,
    daemonsets, deployments, jobs, cronjobs) separated by ``---``.
    Workloads without an app name are dropped. An empty working set yields
    the welcome banner; deployments that are all unnamed, with nothing else
    to show, yield a short configuration hint.

    Args:
        deployments: Deployment records
        namespaces: Namespace records, including ``default``
        config_maps: ConfigMap records
        secrets: Secret records with raw data
        settings: Project settings; enables global and project labels
        jobs: Job records
        cronjobs: CronJob records
        daemonsets: DaemonSet records

    Returns:
        The bundle text

    Raises:
        GenerationError: If a record is malformed beyond graceful degradation
    """
    try:
        return _compose(
            list(deployments),
            list(namespaces),
            list(config_maps),
            list(secrets),
            settings,
            list(jobs or []),
            list(cronjobs or []),
            list(daemonsets or []),
        )
    except ComposerError:
        raise
    except Exception as e:
        raise GenerationError(f"Failed to generate YAML bundle: {e}") from e


def download_filename(deployments: Sequence[DeploymentConfig], settings: Optional[ProjectSettings] = None) -> str:
    """Suggested file name for a downloaded bundle."""
    project = settings.name if settings else DEFAULT_PROJECT_NAME
    valid = [deployment for deployment in deployments if deployment.app_name]
    if len(valid) == 1:
        return f"{project}-{valid[0].app_name}-deployment.yaml"
    return f"{project}-kubernetes-deployments-{len(valid)}.yaml"
