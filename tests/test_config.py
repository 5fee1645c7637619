import argparse

from kube_composer.config import (
    ConfigLoader,
    ConfigValidator,
    GenerateConfig,
    GlobalConfig,
    load_config_from_args,
)


class TestConfigLoader:

    def test_defaults_when_no_file(self, tmp_path):
        config = ConfigLoader().load_config(config_file=str(tmp_path / "missing.yaml"))
        assert config == GlobalConfig()

    def test_loads_yaml_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "default_project_name: shop\n"
            "validate_output: false\n"
            "default_global_labels:\n"
            "  team: core\n",
            encoding="utf-8",
        )
        config = ConfigLoader().load_config(config_file=str(path))
        assert config.default_project_name == "shop"
        assert config.validate_output is False
        assert config.default_global_labels == {"team": "core"}

    def test_search_paths_are_used(self, tmp_path):
        path = tmp_path / ".kube-composer.yaml"
        path.write_text("default_project_name: found\n", encoding="utf-8")
        base = GlobalConfig(config_file_paths=[str(tmp_path / "nope.yaml"), str(path)])
        assert ConfigLoader().load_config(global_config=base).default_project_name == "found"

    def test_non_mapping_file_is_ignored(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("- just\n- a list\n", encoding="utf-8")
        assert ConfigLoader().load_config(config_file=str(path)) == GlobalConfig()

    def test_unparseable_file_is_ignored(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("key: [unclosed\n", encoding="utf-8")
        assert ConfigLoader().load_config(config_file=str(path)) == GlobalConfig()


class TestConfigValidator:

    def test_missing_state_file(self, tmp_path):
        errors = ConfigValidator().validate_generate_config(GenerateConfig(state_file=str(tmp_path / "x.json")))
        assert errors == [f"State file not found: {tmp_path / 'x.json'}"]

    def test_output_and_output_dir_conflict(self, tmp_path):
        state = tmp_path / "state.json"
        state.write_text("{}", encoding="utf-8")
        config = GenerateConfig(state_file=str(state), output="out.yaml", output_dir=str(tmp_path))
        assert "Use either --output or --output-dir, not both" in ConfigValidator().validate_generate_config(config)

    def test_existing_output_needs_force(self, tmp_path):
        state = tmp_path / "state.json"
        state.write_text("{}", encoding="utf-8")
        output = tmp_path / "out.yaml"
        output.write_text("", encoding="utf-8")
        validator = ConfigValidator()
        assert validator.validate_generate_config(GenerateConfig(state_file=str(state), output=str(output)))
        assert validator.validate_generate_config(
            GenerateConfig(state_file=str(state), output=str(output), force=True)
        ) == []

    def test_global_config(self):
        validator = ConfigValidator()
        assert validator.validate_global_config(GlobalConfig()) == []
        config = GlobalConfig(default_project_name="", default_global_labels={"app.kubernetes.io/part-of": "x", "bad key!": "y"})
        assert validator.validate_global_config(config) == [
            "default_project_name cannot be empty",
            "Invalid label key in default_global_labels: bad key!",
        ]


def test_load_config_from_args():
    args = argparse.Namespace(
        state="state.json", output=None, output_dir="out", force=True, validate=None, verbose=False,
    )
    config = load_config_from_args(args)
    assert config == GenerateConfig(state_file="state.json", output_dir="out", force=True, validate_output=True)
    args.validate = False
    assert load_config_from_args(args).validate_output is False
