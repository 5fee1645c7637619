"""Constants for Kubernetes field names and rendering defaults."""
from __future__ import annotations

from typing import Final, Sequence


# Kubernetes API field names
class K8sFields:
    """Standard Kubernetes resource field names."""

    # Top-level fields
    API_VERSION: Final[str] = "apiVersion"
    KIND: Final[str] = "kind"
    METADATA: Final[str] = "metadata"
    SPEC: Final[str] = "spec"
    DATA: Final[str] = "data"
    TYPE: Final[str] = "type"

    # Metadata fields
    NAME: Final[str] = "name"
    NAMESPACE: Final[str] = "namespace"
    LABELS: Final[str] = "labels"
    ANNOTATIONS: Final[str] = "annotations"

    # Workload spec fields
    TEMPLATE: Final[str] = "template"
    SELECTOR: Final[str] = "selector"
    MATCH_LABELS: Final[str] = "matchLabels"
    REPLICAS: Final[str] = "replicas"
    CONTAINERS: Final[str] = "containers"
    VOLUMES: Final[str] = "volumes"
    NODE_SELECTOR: Final[str] = "nodeSelector"
    RESTART_POLICY: Final[str] = "restartPolicy"

    # Container fields
    IMAGE: Final[str] = "image"
    PORTS: Final[str] = "ports"
    CONTAINER_PORT: Final[str] = "containerPort"
    ENV: Final[str] = "env"
    VALUE: Final[str] = "value"
    VALUE_FROM: Final[str] = "valueFrom"
    VOLUME_MOUNTS: Final[str] = "volumeMounts"
    MOUNT_PATH: Final[str] = "mountPath"
    COMMAND: Final[str] = "command"
    ARGS: Final[str] = "args"
    RESOURCES: Final[str] = "resources"
    REQUESTS: Final[str] = "requests"
    LIMITS: Final[str] = "limits"
    CPU: Final[str] = "cpu"
    MEMORY: Final[str] = "memory"

    # Reference fields
    KEY: Final[str] = "key"
    CONFIG_MAP_KEY_REF: Final[str] = "configMapKeyRef"
    SECRET_KEY_REF: Final[str] = "secretKeyRef"

    # Volume fields
    EMPTY_DIR: Final[str] = "emptyDir"
    CONFIG_MAP: Final[str] = "configMap"
    SECRET: Final[str] = "secret"
    SECRET_NAME: Final[str] = "secretName"

    # Service fields
    PORT: Final[str] = "port"
    TARGET_PORT: Final[str] = "targetPort"
    PROTOCOL: Final[str] = "protocol"

    # Ingress fields
    INGRESS_CLASS_NAME: Final[str] = "ingressClassName"
    TLS: Final[str] = "tls"
    HOSTS: Final[str] = "hosts"
    HOST: Final[str] = "host"
    RULES: Final[str] = "rules"
    HTTP: Final[str] = "http"
    PATHS: Final[str] = "paths"
    PATH: Final[str] = "path"
    PATH_TYPE: Final[str] = "pathType"
    BACKEND: Final[str] = "backend"
    SERVICE: Final[str] = "service"
    NUMBER: Final[str] = "number"

    # Job/CronJob fields
    COMPLETIONS: Final[str] = "completions"
    PARALLELISM: Final[str] = "parallelism"
    BACKOFF_LIMIT: Final[str] = "backoffLimit"
    ACTIVE_DEADLINE_SECONDS: Final[str] = "activeDeadlineSeconds"
    JOB_TEMPLATE: Final[str] = "jobTemplate"
    SCHEDULE: Final[str] = "schedule"
    CONCURRENCY_POLICY: Final[str] = "concurrencyPolicy"
    STARTING_DEADLINE_SECONDS: Final[str] = "startingDeadlineSeconds"
    SUCCESSFUL_JOBS_HISTORY_LIMIT: Final[str] = "successfulJobsHistoryLimit"
    FAILED_JOBS_HISTORY_LIMIT: Final[str] = "failedJobsHistoryLimit"


class ApiVersions:
    """API groups the generated resources are emitted under."""

    CORE: Final[str] = "v1"
    APPS: Final[str] = "apps/v1"
    NETWORKING: Final[str] = "networking.k8s.io/v1"
    BATCH: Final[str] = "batch/v1"


class Kinds:
    """Kinds of resource the composer knows how to build."""

    DEPLOYMENT: Final[str] = "Deployment"
    DAEMON_SET: Final[str] = "DaemonSet"
    SERVICE: Final[str] = "Service"
    INGRESS: Final[str] = "Ingress"
    CONFIG_MAP: Final[str] = "ConfigMap"
    SECRET: Final[str] = "Secret"
    NAMESPACE: Final[str] = "Namespace"
    JOB: Final[str] = "Job"
    CRON_JOB: Final[str] = "CronJob"


# Label keys
APP_NAME_LABEL: Final[str] = "app.kubernetes.io/name"
PROJECT_LABEL: Final[str] = "project"

# Namespaces that are never emitted explicitly and never deleted
DEFAULT_NAMESPACE: Final[str] = "default"
SYSTEM_NAMESPACES: Final[Sequence[str]] = (
    DEFAULT_NAMESPACE,
    "kube-system",
    "kube-public",
    "kube-node-lease",
)

# Container rendering defaults
DEFAULT_CONTAINER_NAME: Final[str] = "app"
DEFAULT_CPU_REQUEST: Final[str] = "100m"
DEFAULT_MEMORY_REQUEST: Final[str] = "128Mi"
LEGACY_DEFAULT_IMAGE: Final[str] = "nginx:latest"

# Service rendering defaults
DEFAULT_PROTOCOL: Final[str] = "TCP"
PRIMARY_PORT_NAME: Final[str] = "http"

# Enumerations accepted on the value records
SERVICE_TYPES: Final[Sequence[str]] = ("ClusterIP", "NodePort", "LoadBalancer")
VOLUME_TYPES: Final[Sequence[str]] = ("emptyDir", "configMap", "secret")
PATH_TYPES: Final[Sequence[str]] = ("Prefix", "Exact", "ImplementationSpecific")
RESTART_POLICIES: Final[Sequence[str]] = ("Never", "OnFailure")
CONCURRENCY_POLICIES: Final[Sequence[str]] = ("Allow", "Forbid", "Replace")

# Defaults for a fresh working set
DEFAULT_PROJECT_NAME: Final[str] = "my-project"
DEFAULT_SECRET_TYPE: Final[str] = "Opaque"
DEFAULT_SERVICE_TYPE: Final[str] = "ClusterIP"
DEFAULT_REPLICAS: Final[int] = 1
DEFAULT_SERVICE_PORT: Final[int] = 80
DEFAULT_TARGET_PORT: Final[int] = 8080
DEFAULT_CONTAINER_PORT: Final[int] = 8080

# Suffixes used when deriving names
SERVICE_SUFFIX: Final[str] = "-service"
INGRESS_SUFFIX: Final[str] = "-ingress"
COPY_SUFFIX: Final[str] = "-copy"

# Output
GENERATOR_NAME: Final[str] = "Kube Composer"
DOCUMENT_SEPARATOR: Final[str] = "---"
