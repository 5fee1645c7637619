"""Value records describing a kube-composer working set.

Every record is a plain dataclass. Records are converted to and from the
camelCase dictionaries the editor saves, so state written before the
multi-container model existed still loads: a workload with an empty
``containers`` list keeps its top-level ``image``/``env``/``resources`` in
a :class:`LegacyContainerFields` value, and :func:`container_source`
resolves which of the two shapes a workload uses.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from .constants import (
    DEFAULT_NAMESPACE,
    DEFAULT_PROJECT_NAME,
    DEFAULT_REPLICAS,
    DEFAULT_SECRET_TYPE,
    DEFAULT_SERVICE_PORT,
    DEFAULT_SERVICE_TYPE,
    DEFAULT_TARGET_PORT,
)


def utc_now() -> str:
    """Return the current time as an ISO-8601 UTC timestamp."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _str_map(value: Any) -> Dict[str, str]:
    if not isinstance(value, Mapping):
        return {}
    return {str(key): "" if item is None else str(item) for key, item in value.items()}


def _str_list(value: Any) -> List[str]:
    if not isinstance(value, (list, tuple)):
        return []
    return [str(item) for item in value]


def _opt_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return int(value)
    return int(str(value))


def _drop_none(data: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in data.items() if value is not None}


@dataclass
class EnvVarSource:
    """Reference to a key inside a ConfigMap or Secret."""
    type: str = "configMap"  # configMap or secret
    name: str = ""
    key: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "EnvVarSource":
        return cls(
            type=str(data.get("type", "configMap")),
            name=str(data.get("name", "")),
            key=str(data.get("key", "")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "name": self.name, "key": self.key}


@dataclass
class EnvVar:
    """A container environment variable, literal or referenced."""
    name: str = ""
    value: Optional[str] = None
    value_from: Optional[EnvVarSource] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "EnvVar":
        value_from = data.get("valueFrom")
        value = data.get("value")
        return cls(
            name=str(data.get("name", "")),
            value=None if value is None else str(value),
            value_from=EnvVarSource.from_dict(value_from) if isinstance(value_from, Mapping) else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none({
            "name": self.name,
            "value": self.value,
            "valueFrom": self.value_from.to_dict() if self.value_from else None,
        })


@dataclass
class ResourceQuantities:
    cpu: str = ""
    memory: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> "ResourceQuantities":
        if not isinstance(data, Mapping):
            return cls()
        return cls(cpu=str(data.get("cpu") or ""), memory=str(data.get("memory") or ""))

    def to_dict(self) -> Dict[str, Any]:
        return {"cpu": self.cpu, "memory": self.memory}


@dataclass
class ResourceRequirements:
    requests: ResourceQuantities = field(default_factory=ResourceQuantities)
    limits: ResourceQuantities = field(default_factory=ResourceQuantities)

    @classmethod
    def from_dict(cls, data: Any) -> "ResourceRequirements":
        if not isinstance(data, Mapping):
            return cls()
        return cls(
            requests=ResourceQuantities.from_dict(data.get("requests")),
            limits=ResourceQuantities.from_dict(data.get("limits")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"requests": self.requests.to_dict(), "limits": self.limits.to_dict()}


@dataclass
class VolumeMount:
    name: str = ""
    mount_path: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "VolumeMount":
        return cls(name=str(data.get("name", "")), mount_path=str(data.get("mountPath", "")))

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "mountPath": self.mount_path}


@dataclass
class Container:
    """A container description as edited in the form UI."""
    name: str = ""
    image: str = ""
    port: Optional[int] = None
    env: List[EnvVar] = field(default_factory=list)
    resources: ResourceRequirements = field(default_factory=ResourceRequirements)
    volume_mounts: List[VolumeMount] = field(default_factory=list)
    command: Optional[str] = None
    args: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Container":
        return cls(
            name=str(data.get("name") or ""),
            image=str(data.get("image") or ""),
            port=_opt_int(data.get("port")),
            env=[EnvVar.from_dict(item) for item in data.get("env") or [] if isinstance(item, Mapping)],
            resources=ResourceRequirements.from_dict(data.get("resources")),
            volume_mounts=[
                VolumeMount.from_dict(item)
                for item in data.get("volumeMounts") or []
                if isinstance(item, Mapping)
            ],
            command=data.get("command") or None,
            args=data.get("args") or None,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Return the record in its saved camelCase form."""
        return _drop_none({
            "name": self.name,
            "image": self.image,
            "port": self.port,
            "env": [env.to_dict() for env in self.env],
            "resources": self.resources.to_dict(),
            "volumeMounts": [mount.to_dict() for mount in self.volume_mounts],
            "command": self.command,
            "args": self.args,
        })


@dataclass
class Volume:
    """A pod volume; ``type`` selects the emptyDir/configMap/secret variant."""
    name: str = ""
    mount_path: str = ""
    type: str = "emptyDir"
    config_map_name: Optional[str] = None
    secret_name: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Volume":
        return cls(
            name=str(data.get("name", "")),
            mount_path=str(data.get("mountPath", "")),
            type=str(data.get("type", "emptyDir")),
            config_map_name=data.get("configMapName") or None,
            secret_name=data.get("secretName") or None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none({
            "name": self.name,
            "mountPath": self.mount_path,
            "type": self.type,
            "configMapName": self.config_map_name,
            "secretName": self.secret_name,
        })


@dataclass
class IngressRule:
    host: str = ""
    path: str = "/"
    path_type: str = "Prefix"
    service_name: str = ""
    service_port: int = DEFAULT_SERVICE_PORT

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "IngressRule":
        return cls(
            host=str(data.get("host") or ""),
            path=str(data.get("path", "/")),
            path_type=str(data.get("pathType", "Prefix")),
            service_name=str(data.get("serviceName", "")),
            service_port=_opt_int(data.get("servicePort")) or 0,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "host": self.host,
            "path": self.path,
            "pathType": self.path_type,
            "serviceName": self.service_name,
            "servicePort": self.service_port,
        }


@dataclass
class IngressTLS:
    secret_name: str = ""
    hosts: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "IngressTLS":
        return cls(secret_name=str(data.get("secretName", "")), hosts=_str_list(data.get("hosts")))

    def to_dict(self) -> Dict[str, Any]:
        return {"secretName": self.secret_name, "hosts": list(self.hosts)}


@dataclass
class IngressConfig:
    enabled: bool = False
    class_name: str = ""
    annotations: Dict[str, str] = field(default_factory=dict)
    tls: List[IngressTLS] = field(default_factory=list)
    rules: List[IngressRule] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> "IngressConfig":
        if not isinstance(data, Mapping):
            return cls()
        return cls(
            enabled=bool(data.get("enabled", False)),
            class_name=str(data.get("className") or ""),
            annotations=_str_map(data.get("annotations")),
            tls=[IngressTLS.from_dict(item) for item in data.get("tls") or [] if isinstance(item, Mapping)],
            rules=[IngressRule.from_dict(item) for item in data.get("rules") or [] if isinstance(item, Mapping)],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "enabled": self.enabled,
            "className": self.class_name,
            "annotations": dict(self.annotations),
            "tls": [entry.to_dict() for entry in self.tls],
            "rules": [rule.to_dict() for rule in self.rules],
        }


@dataclass
class EmbeddedData:
    """A ConfigMap or Secret embedded directly in an older workload record."""
    name: str = ""
    data: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "EmbeddedData":
        return cls(name=str(data.get("name", "")), data=_str_map(data.get("data")))

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "data": dict(self.data)}


@dataclass
class LegacyContainerFields:
    """Top-level single-container fields of workloads saved by older versions."""
    image: Optional[str] = None
    env: List[EnvVar] = field(default_factory=list)
    resources: Optional[ResourceRequirements] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Optional["LegacyContainerFields"]:
        if not any(key in data for key in ("image", "env", "resources")):
            return None
        resources = data.get("resources")
        return cls(
            image=data.get("image") or None,
            env=[EnvVar.from_dict(item) for item in data.get("env") or [] if isinstance(item, Mapping)],
            resources=ResourceRequirements.from_dict(resources) if isinstance(resources, Mapping) else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none({
            "image": self.image,
            "env": [env.to_dict() for env in self.env],
            "resources": self.resources.to_dict() if self.resources else None,
        })


@dataclass
class ProjectSettings:
    name: str = DEFAULT_PROJECT_NAME
    description: str = ""
    global_labels: Dict[str, str] = field(default_factory=dict)
    created_at: str = field(default_factory=utc_now)
    updated_at: str = field(default_factory=utc_now)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ProjectSettings":
        return cls(
            name=str(data.get("name") or DEFAULT_PROJECT_NAME),
            description=str(data.get("description") or ""),
            global_labels=_str_map(data.get("globalLabels")),
            created_at=str(data.get("createdAt") or utc_now()),
            updated_at=str(data.get("updatedAt") or utc_now()),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "globalLabels": dict(self.global_labels),
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }


@dataclass
class Namespace:
    name: str = ""
    labels: Dict[str, str] = field(default_factory=dict)
    annotations: Dict[str, str] = field(default_factory=dict)
    created_at: str = field(default_factory=utc_now)
    uid: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Namespace":
        return cls(
            name=str(data.get("name", "")),
            labels=_str_map(data.get("labels")),
            annotations=_str_map(data.get("annotations")),
            created_at=str(data.get("createdAt") or utc_now()),
            uid=str(data.get("uid") or ""),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "uid": self.uid,
            "name": self.name,
            "labels": dict(self.labels),
            "annotations": dict(self.annotations),
            "createdAt": self.created_at,
        }


@dataclass
class ConfigMap:
    name: str = ""
    namespace: str = DEFAULT_NAMESPACE
    labels: Dict[str, str] = field(default_factory=dict)
    annotations: Dict[str, str] = field(default_factory=dict)
    data: Dict[str, str] = field(default_factory=dict)
    created_at: str = field(default_factory=utc_now)
    uid: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ConfigMap":
        return cls(
            name=str(data.get("name", "")),
            namespace=str(data.get("namespace") or DEFAULT_NAMESPACE),
            labels=_str_map(data.get("labels")),
            annotations=_str_map(data.get("annotations")),
            data=_str_map(data.get("data")),
            created_at=str(data.get("createdAt") or utc_now()),
            uid=str(data.get("uid") or ""),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "uid": self.uid,
            "name": self.name,
            "namespace": self.namespace,
            "labels": dict(self.labels),
            "annotations": dict(self.annotations),
            "data": dict(self.data),
            "createdAt": self.created_at,
        }


@dataclass
class Secret:
    """A Secret whose ``data`` values are kept raw; encoding happens on render."""
    name: str = ""
    namespace: str = DEFAULT_NAMESPACE
    labels: Dict[str, str] = field(default_factory=dict)
    annotations: Dict[str, str] = field(default_factory=dict)
    type: str = DEFAULT_SECRET_TYPE
    data: Dict[str, str] = field(default_factory=dict)
    created_at: str = field(default_factory=utc_now)
    uid: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Secret":
        return cls(
            name=str(data.get("name", "")),
            namespace=str(data.get("namespace") or DEFAULT_NAMESPACE),
            labels=_str_map(data.get("labels")),
            annotations=_str_map(data.get("annotations")),
            type=str(data.get("type") or DEFAULT_SECRET_TYPE),
            data=_str_map(data.get("data")),
            created_at=str(data.get("createdAt") or utc_now()),
            uid=str(data.get("uid") or ""),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "uid": self.uid,
            "name": self.name,
            "namespace": self.namespace,
            "labels": dict(self.labels),
            "annotations": dict(self.annotations),
            "type": self.type,
            "data": dict(self.data),
            "createdAt": self.created_at,
        }


@dataclass
class WorkloadConfig:
    """Fields shared by Deployments and DaemonSets."""
    app_name: str = ""
    containers: List[Container] = field(default_factory=list)
    port: int = DEFAULT_SERVICE_PORT
    target_port: int = DEFAULT_TARGET_PORT
    service_type: str = DEFAULT_SERVICE_TYPE
    namespace: str = DEFAULT_NAMESPACE
    labels: Dict[str, str] = field(default_factory=dict)
    annotations: Dict[str, str] = field(default_factory=dict)
    volumes: List[Volume] = field(default_factory=list)
    config_maps: List[EmbeddedData] = field(default_factory=list)
    secrets: List[EmbeddedData] = field(default_factory=list)
    selected_config_maps: List[str] = field(default_factory=list)
    selected_secrets: List[str] = field(default_factory=list)
    ingress: IngressConfig = field(default_factory=IngressConfig)
    legacy: Optional[LegacyContainerFields] = None
    uid: str = ""

    @staticmethod
    def _common_kwargs(data: Mapping[str, Any]) -> Dict[str, Any]:
        return dict(
            app_name=str(data.get("appName") or ""),
            containers=[Container.from_dict(item) for item in data.get("containers") or [] if isinstance(item, Mapping)],
            port=_opt_int(data.get("port")) or 0,
            target_port=_opt_int(data.get("targetPort")) or 0,
            service_type=str(data.get("serviceType") or DEFAULT_SERVICE_TYPE),
            namespace=str(data.get("namespace") or DEFAULT_NAMESPACE),
            labels=_str_map(data.get("labels")),
            annotations=_str_map(data.get("annotations")),
            volumes=[Volume.from_dict(item) for item in data.get("volumes") or [] if isinstance(item, Mapping)],
            config_maps=[EmbeddedData.from_dict(item) for item in data.get("configMaps") or [] if isinstance(item, Mapping)],
            secrets=[EmbeddedData.from_dict(item) for item in data.get("secrets") or [] if isinstance(item, Mapping)],
            selected_config_maps=_str_list(data.get("selectedConfigMaps")),
            selected_secrets=_str_list(data.get("selectedSecrets")),
            ingress=IngressConfig.from_dict(data.get("ingress")),
            legacy=LegacyContainerFields.from_dict(data),
            uid=str(data.get("uid") or ""),
        )

    def _common_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "uid": self.uid,
            "appName": self.app_name,
            "containers": [container.to_dict() for container in self.containers],
            "port": self.port,
            "targetPort": self.target_port,
            "serviceType": self.service_type,
            "namespace": self.namespace,
            "labels": dict(self.labels),
            "annotations": dict(self.annotations),
            "volumes": [volume.to_dict() for volume in self.volumes],
            "configMaps": [entry.to_dict() for entry in self.config_maps],
            "secrets": [entry.to_dict() for entry in self.secrets],
            "selectedConfigMaps": list(self.selected_config_maps),
            "selectedSecrets": list(self.selected_secrets),
            "ingress": self.ingress.to_dict(),
        }
        if self.legacy is not None:
            data.update(self.legacy.to_dict())
        return data


@dataclass
class DeploymentConfig(WorkloadConfig):
    replicas: int = DEFAULT_REPLICAS

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DeploymentConfig":
        replicas = _opt_int(data.get("replicas"))
        return cls(
            replicas=DEFAULT_REPLICAS if replicas is None else replicas,
            **cls._common_kwargs(data),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = self._common_dict()
        data["replicas"] = self.replicas
        return data


@dataclass
class DaemonSetConfig(WorkloadConfig):
    service_enabled: bool = False
    node_selector: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DaemonSetConfig":
        return cls(
            service_enabled=bool(data.get("serviceEnabled", False)),
            node_selector=_str_map(data.get("nodeSelector")),
            **cls._common_kwargs(data),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = self._common_dict()
        data["serviceEnabled"] = self.service_enabled
        data["nodeSelector"] = dict(self.node_selector)
        return data


@dataclass
class JobConfig:
    name: str = ""
    namespace: str = DEFAULT_NAMESPACE
    labels: Dict[str, str] = field(default_factory=dict)
    annotations: Dict[str, str] = field(default_factory=dict)
    containers: List[Container] = field(default_factory=list)
    restart_policy: str = "Never"
    completions: Optional[int] = None
    parallelism: Optional[int] = None
    backoff_limit: Optional[int] = None
    active_deadline_seconds: Optional[int] = None
    created_at: Optional[str] = None
    uid: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "JobConfig":
        return cls(
            name=str(data.get("name", "")),
            namespace=str(data.get("namespace") or DEFAULT_NAMESPACE),
            labels=_str_map(data.get("labels")),
            annotations=_str_map(data.get("annotations")),
            containers=[Container.from_dict(item) for item in data.get("containers") or [] if isinstance(item, Mapping)],
            restart_policy=str(data.get("restartPolicy") or "Never"),
            completions=_opt_int(data.get("completions")),
            parallelism=_opt_int(data.get("parallelism")),
            backoff_limit=_opt_int(data.get("backoffLimit")),
            active_deadline_seconds=_opt_int(data.get("activeDeadlineSeconds")),
            created_at=data.get("createdAt"),
            uid=str(data.get("uid") or ""),
        )

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none({
            "uid": self.uid,
            "name": self.name,
            "namespace": self.namespace,
            "labels": dict(self.labels),
            "annotations": dict(self.annotations),
            "containers": [container.to_dict() for container in self.containers],
            "restartPolicy": self.restart_policy,
            "completions": self.completions,
            "parallelism": self.parallelism,
            "backoffLimit": self.backoff_limit,
            "activeDeadlineSeconds": self.active_deadline_seconds,
            "createdAt": self.created_at,
        })


@dataclass
class CronJobConfig:
    name: str = ""
    namespace: str = DEFAULT_NAMESPACE
    labels: Dict[str, str] = field(default_factory=dict)
    annotations: Dict[str, str] = field(default_factory=dict)
    schedule: str = ""
    concurrency_policy: Optional[str] = None
    starting_deadline_seconds: Optional[int] = None
    successful_jobs_history_limit: Optional[int] = None
    failed_jobs_history_limit: Optional[int] = None
    job_template: JobConfig = field(default_factory=JobConfig)
    created_at: Optional[str] = None
    uid: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CronJobConfig":
        template = data.get("jobTemplate")
        return cls(
            name=str(data.get("name", "")),
            namespace=str(data.get("namespace") or DEFAULT_NAMESPACE),
            labels=_str_map(data.get("labels")),
            annotations=_str_map(data.get("annotations")),
            schedule=str(data.get("schedule") or ""),
            concurrency_policy=data.get("concurrencyPolicy") or None,
            starting_deadline_seconds=_opt_int(data.get("startingDeadlineSeconds")),
            successful_jobs_history_limit=_opt_int(data.get("successfulJobsHistoryLimit")),
            failed_jobs_history_limit=_opt_int(data.get("failedJobsHistoryLimit")),
            job_template=JobConfig.from_dict(template) if isinstance(template, Mapping) else JobConfig(),
            created_at=data.get("createdAt"),
            uid=str(data.get("uid") or ""),
        )

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none({
            "uid": self.uid,
            "name": self.name,
            "namespace": self.namespace,
            "labels": dict(self.labels),
            "annotations": dict(self.annotations),
            "schedule": self.schedule,
            "concurrencyPolicy": self.concurrency_policy,
            "startingDeadlineSeconds": self.starting_deadline_seconds,
            "successfulJobsHistoryLimit": self.successful_jobs_history_limit,
            "failedJobsHistoryLimit": self.failed_jobs_history_limit,
            "jobTemplate": self.job_template.to_dict(),
            "createdAt": self.created_at,
        })


# Container layout of a workload, resolved once at the model boundary
@dataclass(frozen=True)
class MultiContainerSource:
    containers: Tuple[Container, ...]


@dataclass(frozen=True)
class LegacyContainerSource:
    fields: LegacyContainerFields


ContainerSource = Union[MultiContainerSource, LegacyContainerSource]


def container_source(config: WorkloadConfig) -> ContainerSource:
    """Decide whether a workload renders its container list or the legacy fields."""
    if config.containers:
        return MultiContainerSource(tuple(config.containers))
    return LegacyContainerSource(config.legacy or LegacyContainerFields())
