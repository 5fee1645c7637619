from kube_composer.constants import APP_NAME_LABEL
from kube_composer.labels import merge_labels, project_labels, selector_labels, workload_labels
from kube_composer.models import ProjectSettings


class TestMergeLabels:

    def test_stale_global_keys_are_replaced(self):
        merged = merge_labels(
            {"app": "web", "team": "old", "project": "previous"},
            {"team": "old"},
            {"team": "new", "env": "prod"},
            "shop",
        )
        assert merged == {"team": "new", "env": "prod", "app": "web", "project": "shop"}

    def test_resource_label_wins_over_new_global(self):
        merged = merge_labels({"env": "dev"}, {}, {"env": "prod"}, "shop")
        assert merged["env"] == "dev"

    def test_project_label_always_set(self):
        assert merge_labels({"project": "stale"}, None, None, "shop") == {"project": "shop"}

    def test_project_in_global_labels_is_overridden(self):
        assert merge_labels({}, {}, {"project": "other"}, "shop") == {"project": "shop"}

    def test_idempotent(self):
        global_labels = {"env": "prod"}
        once = merge_labels({"tier": "web"}, global_labels, global_labels, "shop")
        twice = merge_labels(once, global_labels, global_labels, "shop")
        assert once == twice == {"env": "prod", "tier": "web", "project": "shop"}

    def test_inputs_not_modified(self):
        resource = {"team": "old"}
        old = {"team": "old"}
        merge_labels(resource, old, {"env": "prod"}, "shop")
        assert resource == {"team": "old"}
        assert old == {"team": "old"}


def test_project_labels_without_settings_is_a_copy():
    labels = {"tier": "web"}
    result = project_labels(labels, None)
    assert result == labels
    assert result is not labels


def test_project_labels_with_settings():
    settings = ProjectSettings(name="shop", global_labels={"env": "prod", "tier": "base"})
    assert project_labels({"tier": "web"}, settings) == {"env": "prod", "tier": "web", "project": "shop"}


def test_workload_labels_start_with_app_name():
    settings = ProjectSettings(name="shop")
    labels = workload_labels("web", {"tier": "frontend"}, settings)
    assert list(labels)[0] == APP_NAME_LABEL
    assert labels == {APP_NAME_LABEL: "web", "tier": "frontend", "project": "shop"}


def test_selector_excludes_global_labels():
    settings = ProjectSettings(name="shop", global_labels={"env": "prod"})
    assert selector_labels("web", settings) == {APP_NAME_LABEL: "web", "project": "shop"}
    assert selector_labels("web", None) == {APP_NAME_LABEL: "web"}


def test_project_labels_override_global_project():
    settings = ProjectSettings(name="shop", global_labels={"project": "other", "env": "prod"})
    assert project_labels({}, settings) == {"project": "shop", "env": "prod"}
