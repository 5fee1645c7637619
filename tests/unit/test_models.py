from kube_composer.models import (
    Container,
    CronJobConfig,
    DaemonSetConfig,
    DeploymentConfig,
    LegacyContainerSource,
    MultiContainerSource,
    container_source,
)


def test_deployment_from_saved_form():
    config = DeploymentConfig.from_dict({
        "appName": "web",
        "replicas": "3",
        "port": 80,
        "targetPort": 8080,
        "containers": [{"name": "web", "image": "nginx", "port": 8080, "env": [{"name": "A", "value": "1"}]}],
        "ingress": {"enabled": True, "rules": [{"host": "shop.example.com", "serviceName": "web-service"}]},
        "selectedConfigMaps": ["app-config"],
    })
    assert config.replicas == 3
    assert config.containers[0].env[0].value == "1"
    assert config.ingress.rules[0].path == "/"
    assert config.ingress.rules[0].service_port == 0
    assert config.selected_config_maps == ["app-config"]
    assert config.legacy is None


def test_missing_replicas_defaults_to_one():
    assert DeploymentConfig.from_dict({"appName": "web"}).replicas == 1


def test_legacy_fields_survive_to_dict():
    data = {"appName": "old", "image": "redis:7", "port": 6379, "targetPort": 6379}
    saved = DeploymentConfig.from_dict(data).to_dict()
    assert saved["image"] == "redis:7"
    assert saved["containers"] == []


def test_container_source():
    assert isinstance(container_source(DeploymentConfig()), LegacyContainerSource)
    source = container_source(DeploymentConfig(containers=[Container(name="web")]))
    assert isinstance(source, MultiContainerSource)
    assert source.containers[0].name == "web"


def test_daemonset_round_trip():
    original = DaemonSetConfig(
        app_name="agent",
        containers=[Container(name="agent", image="fluentd")],
        service_enabled=True,
        node_selector={"kubernetes.io/os": "linux"},
        uid="daemonSets-1",
    )
    assert DaemonSetConfig.from_dict(original.to_dict()) == original


def test_cronjob_round_trip():
    original = CronJobConfig(name="nightly", schedule="0 2 * * *", failed_jobs_history_limit=1, created_at="x")
    assert CronJobConfig.from_dict(original.to_dict()) == original
