from kube_composer.containers import build_containers, embed_raw_containers, render_container, render_env_var
from kube_composer.models import (
    Container,
    DeploymentConfig,
    EnvVar,
    EnvVarSource,
    LegacyContainerFields,
    ResourceQuantities,
    ResourceRequirements,
    VolumeMount,
)
from kube_composer.ports import derive_service_ports


class TestRenderContainer:

    def test_minimal_container_gets_default_requests(self):
        rendered = render_container(Container(name="web", image="nginx:1.25", port=80))
        assert rendered == {
            "name": "web",
            "image": "nginx:1.25",
            "ports": [{"containerPort": 80}],
            "resources": {"requests": {"cpu": "100m", "memory": "128Mi"}},
        }

    def test_unnamed_container_is_called_app(self):
        assert render_container(Container(image="busybox"))["name"] == "app"

    def test_no_port_no_ports_key(self):
        assert "ports" not in render_container(Container(name="worker", image="busybox"))

    def test_limits_only_when_set(self):
        container = Container(
            name="web",
            image="nginx",
            resources=ResourceRequirements(
                requests=ResourceQuantities(cpu="250m"),
                limits=ResourceQuantities(memory="512Mi"),
            ),
        )
        assert render_container(container)["resources"] == {
            "requests": {"cpu": "250m", "memory": "128Mi"},
            "limits": {"memory": "512Mi"},
        }

    def test_command_and_args_are_wrapped_in_lists(self):
        rendered = render_container(Container(name="job", image="busybox", command="sh", args="-c"))
        assert rendered["command"] == ["sh"]
        assert rendered["args"] == ["-c"]

    def test_volume_mounts(self):
        container = Container(name="web", image="nginx", volume_mounts=[VolumeMount("cache", "/tmp/cache")])
        assert render_container(container)["volumeMounts"] == [{"name": "cache", "mountPath": "/tmp/cache"}]


class TestRenderEnvVar:

    def test_literal_value(self):
        assert render_env_var(EnvVar(name="MODE", value="prod")) == {"name": "MODE", "value": "prod"}

    def test_secret_reference_wins_over_value(self):
        env = EnvVar(name="PASSWORD", value="ignored", value_from=EnvVarSource("secret", "db", "password"))
        assert render_env_var(env) == {
            "name": "PASSWORD",
            "valueFrom": {"secretKeyRef": {"name": "db", "key": "password"}},
        }

    def test_configmap_reference(self):
        env = EnvVar(name="LEVEL", value_from=EnvVarSource("configMap", "app-config", "level"))
        assert render_env_var(env)["valueFrom"] == {"configMapKeyRef": {"name": "app-config", "key": "level"}}


class TestLegacyFallback:

    def test_empty_legacy_workload_uses_defaults(self):
        config = DeploymentConfig(app_name="legacy", containers=[], target_port=8080)
        assert build_containers(config) == [{
            "name": "app",
            "image": "nginx:latest",
            "ports": [{"containerPort": 8080}],
            "env": [],
            "resources": {"requests": {"cpu": "100m", "memory": "128Mi"}},
        }]

    def test_legacy_fields_loaded_from_saved_state(self):
        config = DeploymentConfig.from_dict({
            "appName": "cache",
            "image": "redis:7",
            "targetPort": 6379,
            "env": [{"name": "MODE", "value": "standalone"}],
        })
        assert config.legacy == LegacyContainerFields(image="redis:7", env=[EnvVar("MODE", "standalone")])
        [container] = build_containers(config)
        assert container["image"] == "redis:7"
        assert container["ports"] == [{"containerPort": 6379}]
        assert container["env"] == [{"name": "MODE", "value": "standalone"}]

    def test_containers_take_precedence_over_legacy(self):
        config = DeploymentConfig(
            app_name="web",
            containers=[Container(name="web", image="nginx")],
            legacy=LegacyContainerFields(image="ignored"),
        )
        assert [c["image"] for c in build_containers(config)] == ["nginx"]


def test_job_containers_embedded_raw():
    container = Container(name="migrate", image="busybox", command="migrate")
    assert embed_raw_containers([container]) == [{
        "name": "migrate",
        "image": "busybox",
        "env": [],
        "resources": {"requests": {"cpu": "", "memory": ""}, "limits": {"cpu": "", "memory": ""}},
        "volumeMounts": [],
        "command": "migrate",
    }]


class TestServicePorts:

    def test_container_on_target_port_adds_nothing(self):
        config = DeploymentConfig(
            app_name="web", port=80, target_port=8080,
            containers=[Container(name="web", image="nginx", port=8080)],
        )
        assert derive_service_ports(config) == [
            {"port": 80, "targetPort": 8080, "protocol": "TCP", "name": "http"},
        ]

    def test_extra_container_port_is_exposed(self):
        config = DeploymentConfig(
            app_name="web", port=80, target_port=8080,
            containers=[
                Container(name="web", image="nginx", port=8080),
                Container(name="metrics", image="exporter", port=9090),
            ],
        )
        assert derive_service_ports(config)[1] == {
            "port": 9090, "targetPort": 9090, "protocol": "TCP", "name": "metrics-port",
        }

    def test_unnamed_container_port_uses_index(self):
        config = DeploymentConfig(
            app_name="web", port=80, target_port=8080,
            containers=[Container(image="nginx"), Container(image="sidecar", port=9000)],
        )
        assert [port["name"] for port in derive_service_ports(config)] == ["http", "container-1-port"]

    def test_legacy_workload_has_single_unnamed_port(self):
        config = DeploymentConfig(app_name="old", port=80, target_port=3000)
        assert derive_service_ports(config) == [{"port": 80, "targetPort": 3000, "protocol": "TCP"}]
