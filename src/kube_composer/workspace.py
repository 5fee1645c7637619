"""The editable working set of records and its lifecycle operations."""
from __future__ import annotations

import logging
import threading
import uuid
from copy import deepcopy
from typing import Any, Callable, Dict, Final, List, Mapping, Optional, Sequence, Tuple, Type

from .composer import compose_bundle, download_filename
from .constants import (
    COPY_SUFFIX,
    DEFAULT_CONTAINER_PORT,
    DEFAULT_NAMESPACE,
    SERVICE_SUFFIX,
    SYSTEM_NAMESPACES,
)
from .labels import merge_labels
from .models import (
    ConfigMap,
    Container,
    CronJobConfig,
    DaemonSetConfig,
    DeploymentConfig,
    JobConfig,
    Namespace,
    ProjectSettings,
    Secret,
    WorkloadConfig,
    utc_now,
)
from .types import WorkspaceError


class Collections:
    """Names of the record collections held by a workspace."""

    DEPLOYMENTS: Final[str] = "deployments"
    DAEMON_SETS: Final[str] = "daemonSets"
    NAMESPACES: Final[str] = "namespaces"
    CONFIG_MAPS: Final[str] = "configMaps"
    SECRETS: Final[str] = "secrets"
    JOBS: Final[str] = "jobs"
    CRON_JOBS: Final[str] = "cronJobs"


RECORD_TYPES: Final[Dict[str, Type[Any]]] = {
    Collections.DEPLOYMENTS: DeploymentConfig,
    Collections.DAEMON_SETS: DaemonSetConfig,
    Collections.NAMESPACES: Namespace,
    Collections.CONFIG_MAPS: ConfigMap,
    Collections.SECRETS: Secret,
    Collections.JOBS: JobConfig,
    Collections.CRON_JOBS: CronJobConfig,
}

NAMESPACED_COLLECTIONS: Final[Sequence[str]] = (
    Collections.DEPLOYMENTS,
    Collections.DAEMON_SETS,
    Collections.CONFIG_MAPS,
    Collections.SECRETS,
    Collections.JOBS,
    Collections.CRON_JOBS,
)

# Collections referenced by name from other records; names must be unique
UNIQUE_NAME_COLLECTIONS: Final[Sequence[str]] = (
    Collections.NAMESPACES,
    Collections.CONFIG_MAPS,
    Collections.SECRETS,
)


def collection_for(record: Any) -> str:
    """Collection a record belongs to, by its exact type."""
    for collection, record_type in RECORD_TYPES.items():
        if type(record) is record_type:
            return collection
    raise WorkspaceError(f"Unsupported record type: {type(record).__name__}")


def record_name(record: Any) -> str:
    if isinstance(record, WorkloadConfig):
        return record.app_name
    return record.name


def _set_record_name(record: Any, name: str) -> None:
    if isinstance(record, WorkloadConfig):
        record.app_name = name
    else:
        record.name = name


def new_container() -> Container:
    """Container seeded the way the editor seeds a fresh form."""
    return Container(port=DEFAULT_CONTAINER_PORT)


class Workspace:
    """
    Holds every record collection of a project.

    Each collection is an immutable tuple replaced as a whole under a single
    lock; a change touching several collections is swapped in at once.
    Records are addressed by a stable ``uid`` assigned when they are added
    and are copied on the way in and out.
    """

    def __init__(self, settings: Optional[ProjectSettings] = None, seed_default_namespace: bool = True):
        self.logger = logging.getLogger(__name__)
        self._lock = threading.RLock()
        self._settings = deepcopy(settings) if settings else ProjectSettings()
        self._collections: Dict[str, Tuple[Any, ...]] = {name: () for name in RECORD_TYPES}
        if seed_default_namespace:
            self.add(Namespace(name=DEFAULT_NAMESPACE))

    # Reading

    @property
    def settings(self) -> ProjectSettings:
        with self._lock:
            return deepcopy(self._settings)

    def list(self, collection: str) -> List[Any]:
        """Copies of every record in a collection, in order."""
        with self._lock:
            return deepcopy(list(self._records(collection)))

    def get(self, collection: str, uid: str) -> Any:
        with self._lock:
            _, record = self._find(collection, uid)
            return deepcopy(record)

    def find_by_name(self, collection: str, name: str) -> Optional[Any]:
        with self._lock:
            for record in self._records(collection):
                if record_name(record) == name:
                    return deepcopy(record)
        return None

    @property
    def deployments(self) -> List[DeploymentConfig]:
        return self.list(Collections.DEPLOYMENTS)

    @property
    def daemonsets(self) -> List[DaemonSetConfig]:
        return self.list(Collections.DAEMON_SETS)

    @property
    def namespaces(self) -> List[Namespace]:
        return self.list(Collections.NAMESPACES)

    @property
    def config_maps(self) -> List[ConfigMap]:
        return self.list(Collections.CONFIG_MAPS)

    @property
    def secrets(self) -> List[Secret]:
        return self.list(Collections.SECRETS)

    @property
    def jobs(self) -> List[JobConfig]:
        return self.list(Collections.JOBS)

    @property
    def cronjobs(self) -> List[CronJobConfig]:
        return self.list(Collections.CRON_JOBS)

    # Generic record lifecycle

    def add(self, record: Any) -> str:
        """
        Add a copy of ``record`` with project labels applied.

        Returns:
            The uid assigned to the stored record

        Raises:
            WorkspaceError: If the name collides in a by-name referenced collection
        """
        collection = collection_for(record)
        with self._lock:
            stored = deepcopy(record)
            self._check_unique(collection, record_name(stored))
            stored.uid = self._new_uid(collection)
            stored.labels = self._merged(stored.labels)
            self._replace(collection, self._records(collection) + (stored,))
            self.logger.debug("Added %s %s (%s)", collection, record_name(stored), stored.uid)
            return stored.uid

    def update(self, uid: str, record: Any) -> None:
        """Replace the record stored under ``uid`` with a copy of ``record``."""
        collection = collection_for(record)
        with self._lock:
            index, current = self._find(collection, uid)
            stored = deepcopy(record)
            if record_name(stored) != record_name(current):
                self._check_unique(collection, record_name(stored))
            stored.uid = uid
            stored.labels = self._merged(stored.labels)
            records = list(self._records(collection))
            records[index] = stored
            self._replace(collection, tuple(records))

    def duplicate(self, collection: str, uid: str) -> str:
        """
        Insert an independent copy right after the original, named ``<name>-copy``.

        Deployments and DaemonSets also suffix named containers and repoint
        ingress rules at the copy's Service.
        """
        with self._lock:
            index, original = self._find(collection, uid)
            copy = deepcopy(original)
            name = f"{record_name(original)}{COPY_SUFFIX}"
            if collection in UNIQUE_NAME_COLLECTIONS:
                while self._name_taken(collection, name):
                    name = f"{name}{COPY_SUFFIX}"
            _set_record_name(copy, name)

            if isinstance(copy, WorkloadConfig):
                for container in copy.containers:
                    if container.name:
                        container.name = f"{container.name}{COPY_SUFFIX}"
                for rule in copy.ingress.rules:
                    rule.service_name = f"{name}{SERVICE_SUFFIX}"
            if isinstance(copy, (Namespace, ConfigMap, Secret, JobConfig, CronJobConfig)):
                copy.created_at = utc_now()

            copy.uid = self._new_uid(collection)
            copy.labels = self._merged(copy.labels)
            records = list(self._records(collection))
            records.insert(index + 1, copy)
            self._replace(collection, tuple(records))
            self.logger.debug("Duplicated %s %s as %s", collection, record_name(original), name)
            return copy.uid

    def duplicate_deployment(self, uid: str) -> str:
        return self.duplicate(Collections.DEPLOYMENTS, uid)

    def duplicate_daemonset(self, uid: str) -> str:
        return self.duplicate(Collections.DAEMON_SETS, uid)

    def duplicate_namespace(self, uid: str) -> str:
        return self.duplicate(Collections.NAMESPACES, uid)

    def duplicate_configmap(self, uid: str) -> str:
        return self.duplicate(Collections.CONFIG_MAPS, uid)

    def duplicate_secret(self, uid: str) -> str:
        return self.duplicate(Collections.SECRETS, uid)

    def duplicate_job(self, uid: str) -> str:
        return self.duplicate(Collections.JOBS, uid)

    def duplicate_cronjob(self, uid: str) -> str:
        return self.duplicate(Collections.CRON_JOBS, uid)

    def remove(self, collection: str, uid: str) -> None:
        """Remove a record without touching references held elsewhere."""
        with self._lock:
            self._find(collection, uid)
            self._replace(collection, tuple(r for r in self._records(collection) if r.uid != uid))

    # Deletions with cascades

    def delete_deployment(self, uid: str) -> None:
        self.remove(Collections.DEPLOYMENTS, uid)

    def delete_daemonset(self, uid: str) -> None:
        self.remove(Collections.DAEMON_SETS, uid)

    def delete_job(self, uid: str) -> None:
        self.remove(Collections.JOBS, uid)

    def delete_cronjob(self, uid: str) -> None:
        self.remove(Collections.CRON_JOBS, uid)

    def delete_namespace(self, uid: str) -> bool:
        """
        Delete a namespace and move everything in it to ``default``.

        Returns:
            False when the namespace is protected and was left in place
        """
        with self._lock:
            _, namespace = self._find(Collections.NAMESPACES, uid)
            if namespace.name in SYSTEM_NAMESPACES:
                self.logger.warning("Refusing to delete protected namespace: %s", namespace.name)
                return False

            def reassign(record: Any) -> Any:
                if record.namespace != namespace.name:
                    return record
                moved = deepcopy(record)
                moved.namespace = DEFAULT_NAMESPACE
                return moved

            changes = {
                collection: tuple(reassign(record) for record in self._records(collection))
                for collection in NAMESPACED_COLLECTIONS
            }
            changes[Collections.NAMESPACES] = tuple(
                record for record in self._records(Collections.NAMESPACES) if record.uid != uid
            )
            self._apply(changes)
            self.logger.info("Deleted namespace %s", namespace.name)
            return True

    def delete_configmap(self, uid: str) -> None:
        """Delete a ConfigMap and drop every workload reference to it."""
        with self._lock:
            _, config_map = self._find(Collections.CONFIG_MAPS, uid)
            name = config_map.name

            def strip(workload: WorkloadConfig) -> WorkloadConfig:
                cleaned = deepcopy(workload)
                cleaned.selected_config_maps = [n for n in cleaned.selected_config_maps if n != name]
                cleaned.volumes = [
                    v for v in cleaned.volumes if v.type != "configMap" or v.config_map_name != name
                ]
                return cleaned

            changes = self._map_workloads(strip)
            changes[Collections.CONFIG_MAPS] = tuple(
                record for record in self._records(Collections.CONFIG_MAPS) if record.uid != uid
            )
            self._apply(changes)
            self.logger.info("Deleted ConfigMap %s", name)

    def delete_secret(self, uid: str) -> None:
        """Delete a Secret and drop workload references and ingress TLS entries using it."""
        with self._lock:
            _, secret = self._find(Collections.SECRETS, uid)
            name = secret.name

            def strip(workload: WorkloadConfig) -> WorkloadConfig:
                cleaned = deepcopy(workload)
                cleaned.selected_secrets = [n for n in cleaned.selected_secrets if n != name]
                cleaned.volumes = [
                    v for v in cleaned.volumes if v.type != "secret" or v.secret_name != name
                ]
                cleaned.ingress.tls = [t for t in cleaned.ingress.tls if t.secret_name != name]
                return cleaned

            changes = self._map_workloads(strip)
            changes[Collections.SECRETS] = tuple(
                record for record in self._records(Collections.SECRETS) if record.uid != uid
            )
            self._apply(changes)
            self.logger.info("Deleted Secret %s", name)

    # Renames with reference rewriting

    def rename_configmap(self, uid: str, new_name: str) -> None:
        with self._lock:
            index, config_map = self._find(Collections.CONFIG_MAPS, uid)
            old_name = config_map.name
            if new_name == old_name:
                return
            self._check_unique(Collections.CONFIG_MAPS, new_name)

            def rewrite(workload: WorkloadConfig) -> WorkloadConfig:
                updated = deepcopy(workload)
                updated.selected_config_maps = [
                    new_name if n == old_name else n for n in updated.selected_config_maps
                ]
                for volume in updated.volumes:
                    if volume.type == "configMap" and volume.config_map_name == old_name:
                        volume.config_map_name = new_name
                for container in updated.containers:
                    for env in container.env:
                        if env.value_from and env.value_from.type == "configMap" and env.value_from.name == old_name:
                            env.value_from.name = new_name
                return updated

            renamed = deepcopy(config_map)
            renamed.name = new_name
            renamed.labels = self._merged(renamed.labels)
            records = list(self._records(Collections.CONFIG_MAPS))
            records[index] = renamed
            changes = self._map_workloads(rewrite)
            changes[Collections.CONFIG_MAPS] = tuple(records)
            self._apply(changes)

    def rename_secret(self, uid: str, new_name: str) -> None:
        with self._lock:
            index, secret = self._find(Collections.SECRETS, uid)
            old_name = secret.name
            if new_name == old_name:
                return
            self._check_unique(Collections.SECRETS, new_name)

            def rewrite(workload: WorkloadConfig) -> WorkloadConfig:
                updated = deepcopy(workload)
                updated.selected_secrets = [new_name if n == old_name else n for n in updated.selected_secrets]
                for volume in updated.volumes:
                    if volume.type == "secret" and volume.secret_name == old_name:
                        volume.secret_name = new_name
                for container in updated.containers:
                    for env in container.env:
                        if env.value_from and env.value_from.type == "secret" and env.value_from.name == old_name:
                            env.value_from.name = new_name
                for entry in updated.ingress.tls:
                    if entry.secret_name == old_name:
                        entry.secret_name = new_name
                return updated

            renamed = deepcopy(secret)
            renamed.name = new_name
            renamed.labels = self._merged(renamed.labels)
            records = list(self._records(Collections.SECRETS))
            records[index] = renamed
            changes = self._map_workloads(rewrite)
            changes[Collections.SECRETS] = tuple(records)
            self._apply(changes)

    # Project settings

    def update_project_settings(self, new_settings: ProjectSettings) -> None:
        """
        Replace the project settings and re-merge labels on every record.

        The previous global labels are removed from each record before the
        new ones are applied, so renamed or dropped global keys do not linger.
        """
        with self._lock:
            old_global_labels = dict(self._settings.global_labels)
            settings = deepcopy(new_settings)
            settings.updated_at = utc_now()

            def relabel(record: Any) -> Any:
                updated = deepcopy(record)
                updated.labels = merge_labels(
                    updated.labels, old_global_labels, settings.global_labels, settings.name
                )
                return updated

            changes = {
                collection: tuple(relabel(record) for record in self._records(collection))
                for collection in RECORD_TYPES
            }
            self._settings = settings
            self._apply(changes)
            self.logger.info("Updated project settings for %s", settings.name)

    # Factories seeding the editor's defaults

    def add_deployment(self, app_name: str = "", **fields: Any) -> str:
        fields.setdefault("containers", [new_container()])
        return self.add(DeploymentConfig(app_name=app_name, **fields))

    def add_daemonset(self, app_name: str = "", **fields: Any) -> str:
        fields.setdefault("containers", [new_container()])
        return self.add(DaemonSetConfig(app_name=app_name, **fields))

    def add_namespace(self, name: str, **fields: Any) -> str:
        return self.add(Namespace(name=name, **fields))

    def add_configmap(self, name: str, **fields: Any) -> str:
        return self.add(ConfigMap(name=name, **fields))

    def add_secret(self, name: str, **fields: Any) -> str:
        return self.add(Secret(name=name, **fields))

    def add_job(self, name: str, **fields: Any) -> str:
        fields.setdefault("containers", [new_container()])
        fields.setdefault("created_at", utc_now())
        return self.add(JobConfig(name=name, **fields))

    def add_cronjob(self, name: str, schedule: str, **fields: Any) -> str:
        fields.setdefault("created_at", utc_now())
        return self.add(CronJobConfig(name=name, schedule=schedule, **fields))

    # Generation

    def generate(self) -> str:
        """Render the whole working set as a YAML bundle."""
        with self._lock:
            settings = self._settings
            return compose_bundle(
                self._records(Collections.DEPLOYMENTS),
                self._records(Collections.NAMESPACES),
                self._records(Collections.CONFIG_MAPS),
                self._records(Collections.SECRETS),
                settings,
                jobs=self._records(Collections.JOBS),
                cronjobs=self._records(Collections.CRON_JOBS),
                daemonsets=self._records(Collections.DAEMON_SETS),
            )

    def download_filename(self) -> str:
        with self._lock:
            return download_filename(self._records(Collections.DEPLOYMENTS), self._settings)

    # Snapshot form

    def to_dict(self) -> Dict[str, Any]:
        with self._lock:
            data: Dict[str, Any] = {"projectSettings": self._settings.to_dict()}
            for collection in RECORD_TYPES:
                data[collection] = [record.to_dict() for record in self._records(collection)]
            return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Workspace":
        """Rebuild a workspace from its saved form; stored labels are kept as saved."""
        settings_data = data.get("projectSettings")
        settings = ProjectSettings.from_dict(settings_data) if isinstance(settings_data, Mapping) else None
        workspace = cls(settings=settings, seed_default_namespace=False)
        changes: Dict[str, Tuple[Any, ...]] = {}
        for collection, record_type in RECORD_TYPES.items():
            records = []
            for item in data.get(collection) or []:
                if not isinstance(item, Mapping):
                    continue
                record = record_type.from_dict(item)
                if not record.uid:
                    record.uid = workspace._new_uid(collection)
                records.append(record)
            changes[collection] = tuple(records)
        if not changes[Collections.NAMESPACES]:
            changes[Collections.NAMESPACES] = (
                Namespace(name=DEFAULT_NAMESPACE, uid=workspace._new_uid(Collections.NAMESPACES)),
            )
        workspace._apply(changes)
        return workspace

    # Internals

    def _records(self, collection: str) -> Tuple[Any, ...]:
        try:
            return self._collections[collection]
        except KeyError:
            raise WorkspaceError(f"Unknown collection: {collection}") from None

    def _find(self, collection: str, uid: str) -> Tuple[int, Any]:
        for index, record in enumerate(self._records(collection)):
            if record.uid == uid:
                return index, record
        raise WorkspaceError(f"No record {uid} in {collection}", uid=uid)

    def _name_taken(self, collection: str, name: str) -> bool:
        return any(record_name(record) == name for record in self._records(collection))

    def _check_unique(self, collection: str, name: str) -> None:
        if collection in UNIQUE_NAME_COLLECTIONS and self._name_taken(collection, name):
            raise WorkspaceError(f"A record named '{name}' already exists in {collection}")

    def _new_uid(self, collection: str) -> str:
        return f"{collection}-{uuid.uuid4().hex[:12]}"

    def _merged(self, labels: Mapping[str, str]) -> Dict[str, str]:
        return merge_labels(labels, {}, self._settings.global_labels, self._settings.name)

    def _map_workloads(self, transform: Callable[[WorkloadConfig], WorkloadConfig]) -> Dict[str, Tuple[Any, ...]]:
        return {
            collection: tuple(transform(record) for record in self._records(collection))
            for collection in (Collections.DEPLOYMENTS, Collections.DAEMON_SETS)
        }

    def _replace(self, collection: str, records: Tuple[Any, ...]) -> None:
        self._apply({collection: records})

    def _apply(self, changes: Mapping[str, Tuple[Any, ...]]) -> None:
        with self._lock:
            self._collections = {**self._collections, **changes}
