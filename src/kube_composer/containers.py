"""Container spec rendering for pod templates."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Sequence

from .constants import (
    DEFAULT_CONTAINER_NAME,
    DEFAULT_CPU_REQUEST,
    DEFAULT_MEMORY_REQUEST,
    K8sFields,
    LEGACY_DEFAULT_IMAGE,
)
from .models import (
    Container,
    EnvVar,
    LegacyContainerFields,
    LegacyContainerSource,
    MultiContainerSource,
    WorkloadConfig,
    container_source,
)
from .types import K8sObject, K8sObjectList

logger = logging.getLogger(__name__)


def render_env_var(env: EnvVar) -> K8sObject:
    """Render one env entry; a ``valueFrom`` reference wins over a literal value."""
    if env.value_from is not None:
        ref_field = (
            K8sFields.CONFIG_MAP_KEY_REF
            if env.value_from.type == "configMap"
            else K8sFields.SECRET_KEY_REF
        )
        return {
            K8sFields.NAME: env.name,
            K8sFields.VALUE_FROM: {
                ref_field: {
                    K8sFields.NAME: env.value_from.name,
                    K8sFields.KEY: env.value_from.key,
                }
            },
        }
    return {K8sFields.NAME: env.name, K8sFields.VALUE: env.value}


def render_container(container: Container) -> K8sObject:
    """Render a single container record into a pod template container."""
    requests = {
        K8sFields.CPU: container.resources.requests.cpu or DEFAULT_CPU_REQUEST,
        K8sFields.MEMORY: container.resources.requests.memory or DEFAULT_MEMORY_REQUEST,
    }
    limits: Dict[str, str] = {}
    if container.resources.limits.cpu:
        limits[K8sFields.CPU] = container.resources.limits.cpu
    if container.resources.limits.memory:
        limits[K8sFields.MEMORY] = container.resources.limits.memory

    rendered: K8sObject = {
        K8sFields.NAME: container.name or DEFAULT_CONTAINER_NAME,
        K8sFields.IMAGE: container.image,
    }
    if container.port:
        rendered[K8sFields.PORTS] = [{K8sFields.CONTAINER_PORT: container.port}]
    if container.env:
        rendered[K8sFields.ENV] = [render_env_var(env) for env in container.env]
    if container.volume_mounts:
        rendered[K8sFields.VOLUME_MOUNTS] = [mount.to_dict() for mount in container.volume_mounts]
    if container.command:
        rendered[K8sFields.COMMAND] = [container.command]
    if container.args:
        rendered[K8sFields.ARGS] = [container.args]

    resources: K8sObject = {K8sFields.REQUESTS: requests}
    if limits:
        resources[K8sFields.LIMITS] = limits
    rendered[K8sFields.RESOURCES] = resources
    return rendered


def render_legacy_container(fields: LegacyContainerFields, target_port: int) -> K8sObject:
    """Synthesize the single container of a workload saved before multi-container support."""
    requests = fields.resources.requests if fields.resources else None
    return {
        K8sFields.NAME: DEFAULT_CONTAINER_NAME,
        K8sFields.IMAGE: fields.image or LEGACY_DEFAULT_IMAGE,
        K8sFields.PORTS: [{K8sFields.CONTAINER_PORT: target_port}],
        K8sFields.ENV: [env.to_dict() for env in fields.env],
        K8sFields.RESOURCES: {
            K8sFields.REQUESTS: {
                K8sFields.CPU: (requests.cpu if requests else "") or DEFAULT_CPU_REQUEST,
                K8sFields.MEMORY: (requests.memory if requests else "") or DEFAULT_MEMORY_REQUEST,
            }
        },
    }


def build_containers(config: WorkloadConfig) -> K8sObjectList:
    """
    Build the ``containers`` list of a workload's pod template.

    Args:
        config: Deployment or DaemonSet configuration

    Returns:
        Rendered container specs, in record order
    """
    source = container_source(config)
    if isinstance(source, MultiContainerSource):
        return [render_container(container) for container in source.containers]
    if isinstance(source, LegacyContainerSource):
        logger.debug("Rendering legacy single container for %s", config.app_name)
        return [render_legacy_container(source.fields, config.target_port)]
    raise TypeError(f"Unknown container source: {type(source).__name__}")


def embed_raw_containers(containers: Sequence[Container]) -> List[Dict[str, Any]]:
    """Embed Job containers as their stored record form, without rendering."""
    return [container.to_dict() for container in containers]
