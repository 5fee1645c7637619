import json

import pytest
import yaml

from kube_composer.models import ProjectSettings
from kube_composer.snapshot import load_state, load_workspace, save_workspace
from kube_composer.types import SnapshotError
from kube_composer.workspace import Workspace


@pytest.fixture
def workspace():
    workspace = Workspace(settings=ProjectSettings(name="shop", global_labels={"env": "prod"}))
    workspace.add_deployment("web")
    workspace.add_secret("db", data={"password": "hunter2"})
    return workspace


@pytest.mark.parametrize("filename", ["state.json", "state.yaml", "state.yml"])
def test_save_and_load(tmp_path, workspace, filename):
    path = save_workspace(workspace, tmp_path / filename)
    restored = load_workspace(path)
    assert restored.to_dict() == workspace.to_dict()
    assert restored.generate() == workspace.generate()


def test_yaml_state_keeps_key_order(tmp_path, workspace):
    path = save_workspace(workspace, tmp_path / "state.yaml")
    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    assert list(data)[0] == "projectSettings"


def test_refuses_to_overwrite_without_force(tmp_path, workspace):
    path = save_workspace(workspace, tmp_path / "state.json")
    with pytest.raises(SnapshotError):
        save_workspace(workspace, path, force=False)


def test_legacy_state_loads(tmp_path):
    path = tmp_path / "legacy.json"
    path.write_text(json.dumps({
        "deployments": [{"appName": "cache", "image": "redis:7", "port": 6379, "targetPort": 6379}],
    }), encoding="utf-8")

    workspace = load_workspace(path)
    assert [ns.name for ns in workspace.namespaces] == ["default"]
    assert workspace.deployments[0].uid
    assert "image: redis:7" in workspace.generate()


class TestErrors:

    def test_missing_file(self, tmp_path):
        with pytest.raises(SnapshotError, match="not found"):
            load_state(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(SnapshotError):
            load_state(path)

    def test_top_level_must_be_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(SnapshotError, match="mapping"):
            load_state(path)

    def test_empty_file_is_empty_state(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert load_state(path) == {}

    def test_malformed_record(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"deployments": [{"appName": "web", "replicas": "many"}]}), encoding="utf-8")
        with pytest.raises(SnapshotError, match="Malformed"):
            load_workspace(path)
