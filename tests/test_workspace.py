import pytest

from kube_composer.models import (
    ConfigMap,
    Container,
    EnvVar,
    EnvVarSource,
    IngressConfig,
    IngressRule,
    IngressTLS,
    ProjectSettings,
    Volume,
)
from kube_composer.types import WorkspaceError
from kube_composer.workspace import Collections, Workspace


@pytest.fixture
def workspace():
    return Workspace()


class TestInitialState:

    def test_default_project_and_namespace(self, workspace):
        assert workspace.settings.name == "my-project"
        assert [ns.name for ns in workspace.namespaces] == ["default"]
        assert workspace.namespaces[0].labels == {"project": "my-project"}

    def test_empty_working_set_generates_welcome(self, workspace):
        assert "getting-started" in workspace.generate()


class TestAdd:

    def test_new_deployment_is_seeded(self, workspace):
        uid = workspace.add_deployment("web")
        config = workspace.get(Collections.DEPLOYMENTS, uid)
        assert config.uid == uid
        assert config.replicas == 1
        assert config.port == 80
        assert config.target_port == 8080
        assert config.service_type == "ClusterIP"
        assert config.namespace == "default"
        assert config.ingress.enabled is False
        assert [c.port for c in config.containers] == [8080]
        assert config.labels == {"project": "my-project"}

    def test_records_are_copied(self, workspace):
        uid = workspace.add_deployment("web")
        workspace.deployments[0].app_name = "changed"
        assert workspace.get(Collections.DEPLOYMENTS, uid).app_name == "web"

    def test_uids_are_unique(self, workspace):
        first = workspace.add_deployment("web")
        second = workspace.add_deployment("web")
        assert first != second

    def test_duplicate_configmap_name_rejected(self, workspace):
        workspace.add_configmap("app-config")
        with pytest.raises(WorkspaceError):
            workspace.add_configmap("app-config")

    def test_unknown_uid(self, workspace):
        with pytest.raises(WorkspaceError) as excinfo:
            workspace.get(Collections.DEPLOYMENTS, "missing")
        assert excinfo.value.uid == "missing"


class TestUpdate:

    def test_update_replaces_record_and_merges_labels(self, workspace):
        uid = workspace.add_deployment("web")
        config = workspace.get(Collections.DEPLOYMENTS, uid)
        config.replicas = 4
        config.labels = {"tier": "frontend"}
        workspace.update(uid, config)
        updated = workspace.get(Collections.DEPLOYMENTS, uid)
        assert updated.replicas == 4
        assert updated.labels == {"tier": "frontend", "project": "my-project"}


class TestProjectSettings:

    def test_global_labels_are_applied_and_replaced(self, workspace):
        uid = workspace.add_deployment("web", labels={"tier": "frontend"})
        workspace.update_project_settings(ProjectSettings(name="shop", global_labels={"env": "prod"}))
        assert workspace.get(Collections.DEPLOYMENTS, uid).labels == {
            "env": "prod", "tier": "frontend", "project": "shop",
        }

        workspace.update_project_settings(ProjectSettings(name="shop", global_labels={"team": "core"}))
        assert workspace.get(Collections.DEPLOYMENTS, uid).labels == {
            "team": "core", "tier": "frontend", "project": "shop",
        }
        assert workspace.namespaces[0].labels == {"team": "core", "project": "shop"}

    def test_updated_at_is_stamped(self, workspace):
        settings = ProjectSettings(name="shop", updated_at="2020-01-01T00:00:00.000Z")
        workspace.update_project_settings(settings)
        assert workspace.settings.updated_at != "2020-01-01T00:00:00.000Z"
        assert settings.updated_at == "2020-01-01T00:00:00.000Z"


class TestDuplicate:

    def test_duplicate_deployment(self, workspace):
        uid = workspace.add_deployment(
            "web",
            containers=[Container(name="web", image="nginx"), Container(image="sidecar")],
            ingress=IngressConfig(enabled=True, rules=[IngressRule(service_name="web-service")]),
        )
        workspace.add_deployment("api")
        copy_uid = workspace.duplicate_deployment(uid)

        assert [d.app_name for d in workspace.deployments] == ["web", "web-copy", "api"]
        copy = workspace.get(Collections.DEPLOYMENTS, copy_uid)
        assert [c.name for c in copy.containers] == ["web-copy", ""]
        assert copy.ingress.rules[0].service_name == "web-copy-service"
        assert workspace.get(Collections.DEPLOYMENTS, uid).containers[0].name == "web"

    def test_duplicate_namespace_gets_unique_name(self, workspace):
        uid = workspace.add_namespace("team-a")
        workspace.duplicate(Collections.NAMESPACES, uid)
        workspace.duplicate(Collections.NAMESPACES, uid)
        assert [ns.name for ns in workspace.namespaces] == [
            "default", "team-a", "team-a-copy-copy", "team-a-copy",
        ]


class TestDeleteNamespace:

    def test_protected_namespace_is_kept(self, workspace):
        uid = workspace.namespaces[0].uid
        assert workspace.delete_namespace(uid) is False
        assert [ns.name for ns in workspace.namespaces] == ["default"]

    def test_records_move_to_default(self, workspace):
        uid = workspace.add_namespace("team-a")
        workspace.add_deployment("web", namespace="team-a")
        workspace.add_configmap("app-config", namespace="team-a")
        workspace.add_job("migrate", namespace="team-a")

        assert workspace.delete_namespace(uid) is True
        assert [ns.name for ns in workspace.namespaces] == ["default"]
        assert workspace.deployments[0].namespace == "default"
        assert workspace.config_maps[0].namespace == "default"
        assert workspace.jobs[0].namespace == "default"


class TestReferenceCascades:

    def test_delete_configmap_strips_references(self, workspace):
        cm_uid = workspace.add_configmap("app-config")
        workspace.add_deployment(
            "web",
            selected_config_maps=["app-config", "other"],
            volumes=[Volume(name="cfg", type="configMap", config_map_name="app-config"), Volume(name="cache")],
        )
        workspace.delete_configmap(cm_uid)

        [deployment] = workspace.deployments
        assert workspace.config_maps == []
        assert deployment.selected_config_maps == ["other"]
        assert [v.name for v in deployment.volumes] == ["cache"]

    def test_delete_secret_strips_tls(self, workspace):
        secret_uid = workspace.add_secret("web-tls")
        workspace.add_daemonset(
            "agent",
            selected_secrets=["web-tls"],
            ingress=IngressConfig(tls=[IngressTLS("web-tls", ["shop.example.com"]), IngressTLS("other", [])]),
        )
        workspace.delete_secret(secret_uid)

        [daemonset] = workspace.daemonsets
        assert daemonset.selected_secrets == []
        assert [t.secret_name for t in daemonset.ingress.tls] == ["other"]

    def test_rename_configmap_rewrites_references(self, workspace):
        cm_uid = workspace.add_configmap("app-config")
        workspace.add_deployment(
            "web",
            containers=[Container(
                name="web",
                image="nginx",
                env=[EnvVar(name="LEVEL", value_from=EnvVarSource("configMap", "app-config", "level"))],
            )],
            selected_config_maps=["app-config"],
            volumes=[Volume(name="cfg", type="configMap", config_map_name="app-config")],
        )
        workspace.rename_configmap(cm_uid, "web-config")

        [deployment] = workspace.deployments
        assert workspace.config_maps[0].name == "web-config"
        assert deployment.selected_config_maps == ["web-config"]
        assert deployment.volumes[0].config_map_name == "web-config"
        assert deployment.containers[0].env[0].value_from.name == "web-config"

    def test_rename_secret_rejects_existing_name(self, workspace):
        uid = workspace.add_secret("a")
        workspace.add_secret("b")
        with pytest.raises(WorkspaceError):
            workspace.rename_secret(uid, "b")


class TestGenerate:

    def test_generate_uses_settings(self, workspace):
        workspace.update_project_settings(ProjectSettings(name="shop"))
        workspace.add_deployment("web", containers=[Container(name="web", image="nginx:1.25", port=8080)])
        text = workspace.generate()
        assert "# Project: shop" in text
        assert "kind: Deployment" in text
        assert workspace.download_filename() == "shop-web-deployment.yaml"

    def test_add_record_directly(self, workspace):
        uid = workspace.add(ConfigMap(name="direct", data={"a": "1"}))
        assert workspace.find_by_name(Collections.CONFIG_MAPS, "direct").uid == uid
        assert "# === CONFIGMAPS ===" in workspace.generate()


def test_dict_round_trip_keeps_uids(workspace):
    uid = workspace.add_deployment("web")
    restored = Workspace.from_dict(workspace.to_dict())
    assert restored.get(Collections.DEPLOYMENTS, uid).app_name == "web"
    assert [ns.uid for ns in restored.namespaces] == [ns.uid for ns in workspace.namespaces]
