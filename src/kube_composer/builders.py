"""Resource object builders, one per Kubernetes kind.

Each builder takes a configuration record and returns the intermediate
resource mapping handed to the serializer. Keys are inserted in the order
they should appear in the output, since the serializer does not sort.
"""
from __future__ import annotations

import base64
import logging
from typing import Dict, List, Mapping, Optional

from .constants import (
    ApiVersions,
    DEFAULT_SECRET_TYPE,
    INGRESS_SUFFIX,
    K8sFields,
    Kinds,
    SERVICE_SUFFIX,
    SYSTEM_NAMESPACES,
)
from .containers import build_containers, embed_raw_containers
from .labels import project_labels, selector_labels, workload_labels
from .models import (
    ConfigMap,
    CronJobConfig,
    DaemonSetConfig,
    DeploymentConfig,
    EmbeddedData,
    JobConfig,
    Namespace,
    ProjectSettings,
    Secret,
    Volume,
    WorkloadConfig,
)
from .ports import derive_service_ports
from .types import K8sObject, K8sObjectList

logger = logging.getLogger(__name__)


def is_system_namespace(name: str) -> bool:
    """Whether a namespace is ``default`` or one of the Kubernetes system namespaces."""
    return name in SYSTEM_NAMESPACES


def encode_secret_data(data: Mapping[str, str]) -> Dict[str, str]:
    """Base64-encode raw Secret values."""
    return {
        key: base64.b64encode(value.encode("utf-8")).decode("ascii")
        for key, value in data.items()
    }


def _metadata(
    name: str,
    namespace: Optional[str],
    labels: Optional[Mapping[str, str]],
    annotations: Optional[Mapping[str, str]] = None,
) -> K8sObject:
    metadata: K8sObject = {K8sFields.NAME: name}
    if namespace is not None:
        metadata[K8sFields.NAMESPACE] = namespace
    if labels:
        metadata[K8sFields.LABELS] = dict(labels)
    if annotations:
        metadata[K8sFields.ANNOTATIONS] = dict(annotations)
    return metadata


def build_volume(volume: Volume) -> K8sObject:
    """Render a pod volume for its ``type`` variant."""
    rendered: K8sObject = {K8sFields.NAME: volume.name}
    if volume.type == "emptyDir":
        rendered[K8sFields.EMPTY_DIR] = {}
    elif volume.type == "configMap":
        rendered[K8sFields.CONFIG_MAP] = {K8sFields.NAME: volume.config_map_name or volume.name}
    elif volume.type == "secret":
        rendered[K8sFields.SECRET] = {K8sFields.SECRET_NAME: volume.secret_name or volume.name}
    return rendered


def _pod_template(config: WorkloadConfig, labels: Mapping[str, str]) -> K8sObject:
    pod_spec: K8sObject = {K8sFields.CONTAINERS: build_containers(config)}
    if config.volumes:
        pod_spec[K8sFields.VOLUMES] = [build_volume(volume) for volume in config.volumes]
    if isinstance(config, DaemonSetConfig) and config.node_selector:
        pod_spec[K8sFields.NODE_SELECTOR] = dict(config.node_selector)
    return {
        K8sFields.METADATA: {K8sFields.LABELS: dict(labels)},
        K8sFields.SPEC: pod_spec,
    }


def build_deployment(config: DeploymentConfig, settings: Optional[ProjectSettings] = None) -> K8sObject:
    labels = workload_labels(config.app_name, config.labels, settings)
    deployment: K8sObject = {
        K8sFields.API_VERSION: ApiVersions.APPS,
        K8sFields.KIND: Kinds.DEPLOYMENT,
        K8sFields.METADATA: _metadata(config.app_name, config.namespace, labels, config.annotations),
        K8sFields.SPEC: {
            K8sFields.REPLICAS: config.replicas,
            K8sFields.SELECTOR: {K8sFields.MATCH_LABELS: selector_labels(config.app_name, settings)},
            K8sFields.TEMPLATE: _pod_template(config, labels),
        },
    }
    logger.debug("Built Deployment %s", config.app_name)
    return deployment


def build_daemonset(config: DaemonSetConfig, settings: Optional[ProjectSettings] = None) -> K8sObject:
    labels = workload_labels(config.app_name, config.labels, settings)
    daemonset: K8sObject = {
        K8sFields.API_VERSION: ApiVersions.APPS,
        K8sFields.KIND: Kinds.DAEMON_SET,
        K8sFields.METADATA: _metadata(config.app_name, config.namespace, labels, config.annotations),
        K8sFields.SPEC: {
            K8sFields.SELECTOR: {K8sFields.MATCH_LABELS: selector_labels(config.app_name, settings)},
            K8sFields.TEMPLATE: _pod_template(config, labels),
        },
    }
    logger.debug("Built DaemonSet %s", config.app_name)
    return daemonset


def build_service(config: WorkloadConfig, settings: Optional[ProjectSettings] = None) -> K8sObject:
    """Build the Service fronting a workload; its selector matches the workload's."""
    labels = workload_labels(config.app_name, config.labels, settings)
    return {
        K8sFields.API_VERSION: ApiVersions.CORE,
        K8sFields.KIND: Kinds.SERVICE,
        K8sFields.METADATA: _metadata(f"{config.app_name}{SERVICE_SUFFIX}", config.namespace, labels),
        K8sFields.SPEC: {
            K8sFields.SELECTOR: selector_labels(config.app_name, settings),
            K8sFields.PORTS: [dict(port) for port in derive_service_ports(config)],
            K8sFields.TYPE: config.service_type,
        },
    }


def build_ingress(config: WorkloadConfig, settings: Optional[ProjectSettings] = None) -> Optional[K8sObject]:
    """Build a workload's Ingress, or None unless it is enabled and has rules."""
    ingress = config.ingress
    if not ingress.enabled or not ingress.rules:
        return None

    spec: K8sObject = {}
    if ingress.class_name:
        spec[K8sFields.INGRESS_CLASS_NAME] = ingress.class_name
    if ingress.tls:
        tls_entries: K8sObjectList = []
        for entry in ingress.tls:
            hosts = [host for host in entry.hosts if host.strip() != ""]
            if hosts:
                tls_entries.append({K8sFields.SECRET_NAME: entry.secret_name, K8sFields.HOSTS: hosts})
        spec[K8sFields.TLS] = tls_entries

    rules: K8sObjectList = []
    for rule in ingress.rules:
        rendered: K8sObject = {}
        if rule.host:
            rendered[K8sFields.HOST] = rule.host
        rendered[K8sFields.HTTP] = {
            K8sFields.PATHS: [{
                K8sFields.PATH: rule.path,
                K8sFields.PATH_TYPE: rule.path_type,
                K8sFields.BACKEND: {
                    K8sFields.SERVICE: {
                        K8sFields.NAME: rule.service_name,
                        K8sFields.PORT: {K8sFields.NUMBER: rule.service_port},
                    }
                },
            }]
        }
        rules.append(rendered)
    spec[K8sFields.RULES] = rules

    labels = workload_labels(config.app_name, config.labels, settings)
    return {
        K8sFields.API_VERSION: ApiVersions.NETWORKING,
        K8sFields.KIND: Kinds.INGRESS,
        K8sFields.METADATA: _metadata(
            f"{config.app_name}{INGRESS_SUFFIX}", config.namespace, labels, ingress.annotations
        ),
        K8sFields.SPEC: spec,
    }


def build_embedded_configmap(
    entry: EmbeddedData,
    config: WorkloadConfig,
    settings: Optional[ProjectSettings] = None,
) -> K8sObject:
    labels = workload_labels(config.app_name, config.labels, settings)
    return {
        K8sFields.API_VERSION: ApiVersions.CORE,
        K8sFields.KIND: Kinds.CONFIG_MAP,
        K8sFields.METADATA: _metadata(entry.name, config.namespace, labels),
        K8sFields.DATA: dict(entry.data),
    }


def build_embedded_secret(
    entry: EmbeddedData,
    config: WorkloadConfig,
    settings: Optional[ProjectSettings] = None,
) -> K8sObject:
    labels = workload_labels(config.app_name, config.labels, settings)
    return {
        K8sFields.API_VERSION: ApiVersions.CORE,
        K8sFields.KIND: Kinds.SECRET,
        K8sFields.METADATA: _metadata(entry.name, config.namespace, labels),
        K8sFields.TYPE: DEFAULT_SECRET_TYPE,
        K8sFields.DATA: encode_secret_data(entry.data),
    }


def build_workload_resources(config: WorkloadConfig, settings: Optional[ProjectSettings] = None) -> K8sObjectList:
    """
    Build a workload and everything generated alongside it.

    Deployments yield the Deployment, its Service, an optional Ingress and
    any legacy embedded ConfigMaps/Secrets. DaemonSets yield the DaemonSet,
    a Service only when ``service_enabled`` is set, and the embedded data.
    """
    resources: K8sObjectList = []
    if isinstance(config, DaemonSetConfig):
        resources.append(build_daemonset(config, settings))
        if config.service_enabled:
            resources.append(build_service(config, settings))
    elif isinstance(config, DeploymentConfig):
        resources.append(build_deployment(config, settings))
        resources.append(build_service(config, settings))
        ingress = build_ingress(config, settings)
        if ingress is not None:
            resources.append(ingress)
    else:
        raise TypeError(f"Unsupported workload type: {type(config).__name__}")

    resources.extend(build_embedded_configmap(entry, config, settings) for entry in config.config_maps)
    resources.extend(build_embedded_secret(entry, config, settings) for entry in config.secrets)
    return resources


def build_namespace(namespace: Namespace, settings: Optional[ProjectSettings] = None) -> K8sObject:
    labels = project_labels(namespace.labels, settings)
    return {
        K8sFields.API_VERSION: ApiVersions.CORE,
        K8sFields.KIND: Kinds.NAMESPACE,
        K8sFields.METADATA: _metadata(namespace.name, None, labels, namespace.annotations),
    }


def build_configmap(config_map: ConfigMap, settings: Optional[ProjectSettings] = None) -> K8sObject:
    labels = project_labels(config_map.labels, settings)
    return {
        K8sFields.API_VERSION: ApiVersions.CORE,
        K8sFields.KIND: Kinds.CONFIG_MAP,
        K8sFields.METADATA: _metadata(config_map.name, config_map.namespace, labels, config_map.annotations),
        K8sFields.DATA: dict(config_map.data),
    }


def build_secret(secret: Secret, settings: Optional[ProjectSettings] = None) -> K8sObject:
    """Build a Secret; the stored ``type`` is used as-is and values are encoded here."""
    labels = project_labels(secret.labels, settings)
    return {
        K8sFields.API_VERSION: ApiVersions.CORE,
        K8sFields.KIND: Kinds.SECRET,
        K8sFields.METADATA: _metadata(secret.name, secret.namespace, labels, secret.annotations),
        K8sFields.TYPE: secret.type,
        K8sFields.DATA: encode_secret_data(secret.data),
    }


def build_job_spec(job: JobConfig) -> K8sObject:
    """Job spec with containers embedded as stored; unset limits are omitted on render."""
    return {
        K8sFields.COMPLETIONS: job.completions,
        K8sFields.PARALLELISM: job.parallelism,
        K8sFields.BACKOFF_LIMIT: job.backoff_limit,
        K8sFields.ACTIVE_DEADLINE_SECONDS: job.active_deadline_seconds,
        K8sFields.TEMPLATE: {
            K8sFields.SPEC: {
                K8sFields.RESTART_POLICY: job.restart_policy,
                K8sFields.CONTAINERS: embed_raw_containers(job.containers),
            }
        },
    }


def build_job(job: JobConfig, settings: Optional[ProjectSettings] = None) -> K8sObject:
    labels = project_labels(job.labels, settings)
    return {
        K8sFields.API_VERSION: ApiVersions.BATCH,
        K8sFields.KIND: Kinds.JOB,
        K8sFields.METADATA: _metadata(job.name, job.namespace, labels, job.annotations),
        K8sFields.SPEC: build_job_spec(job),
    }


def build_cronjob(cronjob: CronJobConfig, settings: Optional[ProjectSettings] = None) -> K8sObject:
    labels = project_labels(cronjob.labels, settings)
    return {
        K8sFields.API_VERSION: ApiVersions.BATCH,
        K8sFields.KIND: Kinds.CRON_JOB,
        K8sFields.METADATA: _metadata(cronjob.name, cronjob.namespace, labels, cronjob.annotations),
        K8sFields.SPEC: {
            K8sFields.SCHEDULE: cronjob.schedule,
            K8sFields.CONCURRENCY_POLICY: cronjob.concurrency_policy,
            K8sFields.STARTING_DEADLINE_SECONDS: cronjob.starting_deadline_seconds,
            K8sFields.SUCCESSFUL_JOBS_HISTORY_LIMIT: cronjob.successful_jobs_history_limit,
            K8sFields.FAILED_JOBS_HISTORY_LIMIT: cronjob.failed_jobs_history_limit,
            K8sFields.JOB_TEMPLATE: {K8sFields.SPEC: build_job_spec(cronjob.job_template)},
        },
    }


def custom_namespaces(namespaces: List[Namespace]) -> List[Namespace]:
    """Namespaces that are not ``default`` or a system namespace."""
    return [namespace for namespace in namespaces if not is_system_namespace(namespace.name)]
