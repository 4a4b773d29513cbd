"""Tests for configuration loading and validation."""

from pathlib import Path

import pytest

from hostsampler.config import (
    Config,
    ConfigError,
    ConfigSyntaxError,
    ConfigValidationError,
    ConsoleOutputConfig,
    CpuMetricConfig,
    FileOutputConfig,
    MemoryMetricConfig,
    get_config_path,
    load_config,
)
from hostsampler.config.loader import CONFIG_PATH_ENV, deep_merge, expand_env_vars

FULL_YAML = """\
settings:
  period: 2
metrics:
  - type: cpu
    ids: [0, 1]
  - type: memory
    spec: [used, free]
outputs:
  - type: console
  - type: file
    path: /tmp/metrics.csv
"""

FULL_JSON = """\
{
  "settings": {"period": 2},
  "metrics": [
    {"type": "cpu", "ids": [0, 1]},
    {"type": "memory", "spec": ["used", "free"]}
  ],
  "outputs": [{"type": "console"}, {"type": "file", "path": "/tmp/metrics.csv"}]
}
"""


@pytest.fixture(autouse=True)
def no_config_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(CONFIG_PATH_ENV, raising=False)


class TestLoadConfig:
    """Tests for well-formed config files."""

    def test_yaml(self, write_config) -> None:
        config = load_config(str(write_config(FULL_YAML)))
        assert config.period == 2
        assert isinstance(config.metrics[0], CpuMetricConfig)
        assert config.metrics[0].ids == [0, 1]
        assert isinstance(config.metrics[1], MemoryMetricConfig)
        assert config.metrics[1].spec == ["used", "free"]
        assert isinstance(config.outputs[0], ConsoleOutputConfig)
        assert isinstance(config.outputs[1], FileOutputConfig)
        assert config.outputs[1].path == "/tmp/metrics.csv"

    def test_json_matches_yaml(self, write_config) -> None:
        from_yaml = load_config(str(write_config(FULL_YAML)))
        from_json = load_config(str(write_config(FULL_JSON, "config.json")))
        assert from_json == from_yaml

    def test_defaults_fill_optional_sections(self, write_config) -> None:
        config = load_config(str(write_config("settings:\n  period: 1\n")))
        assert config.metrics == []
        assert config.outputs == []
        assert config.settings.proc_root == "/proc"
        assert config.logging.level == "WARNING"
        assert config.sentry.dsn is None

    def test_specs_alias(self, write_config) -> None:
        path = write_config(
            "settings: {period: 1}\nmetrics:\n  - type: memory\n    specs: [cached]\n"
        )
        assert load_config(str(path)).memory_specs() == ["cached"]

    def test_path_from_environment(
        self, write_config, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv(CONFIG_PATH_ENV, str(write_config(FULL_YAML)))
        assert load_config().period == 2

    def test_overrides_win(self, write_config) -> None:
        config = load_config(
            str(write_config(FULL_YAML)),
            overrides={"settings": {"period": 10, "proc_root": "/host/proc"}},
        )
        assert config.period == 10
        assert config.settings.proc_root == "/host/proc"
        assert len(config.metrics) == 2

    def test_env_vars_expanded(
        self, write_config, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("METRICS_DIR", "/var/lib/hostsampler")
        path = write_config(
            "settings: {period: 1}\n"
            "outputs:\n"
            "  - type: file\n"
            "    path: ${METRICS_DIR}/metrics.csv\n"
        )
        assert load_config(str(path)).outputs[0].path == "/var/lib/hostsampler/metrics.csv"

    def test_unknown_memory_spec_dropped_with_warning(
        self, write_config, caplog: pytest.LogCaptureFixture
    ) -> None:
        path = write_config(
            "settings: {period: 1}\nmetrics:\n  - type: memory\n    spec: [used, usedd, swap]\n"
        )
        with caplog.at_level("WARNING", logger="hostsampler.config.loader"):
            config = load_config(str(path))
        assert config.memory_specs() == ["used"]
        assert "usedd" in caplog.text
        assert "Did you mean 'used'?" in caplog.text
        assert "swap" in caplog.text

    def test_keys_of_other_entry_types_ignored(self, write_config) -> None:
        path = write_config(
            "settings: {period: 1}\n"
            "metrics:\n"
            "  - type: cpu\n"
            "    ids: [0]\n"
            "    spec: [used]\n"
            "  - type: memory\n"
            "    ids: [3]\n"
            "    spec: [free]\n"
            "outputs:\n"
            "  - type: console\n"
            "    path: ignored.csv\n"
        )
        config = load_config(str(path))
        assert config.cpu_core_ids() == [0]
        assert config.memory_specs() == ["free"]
        assert isinstance(config.outputs[0], ConsoleOutputConfig)

    def test_unknown_entry_key_still_rejected(self, write_config) -> None:
        path = write_config("settings: {period: 1}\noutputs:\n  - type: console\n    colour: red\n")
        with pytest.raises(ConfigValidationError, match="outputs.0.colour"):
            load_config(str(path))

    def test_empty_list_keys_are_empty(self, write_config) -> None:
        config = load_config(str(write_config("settings: {period: 1}\nmetrics:\noutputs:\n")))
        assert config.metrics == []
        assert config.outputs == []
        assert config.cpu_core_ids() is None

class TestConfigPath:
    """Tests for config file discovery."""

    def test_no_path_and_no_env(self) -> None:
        with pytest.raises(ConfigError) as exc_info:
            get_config_path(None)
        assert CONFIG_PATH_ENV in str(exc_info.value)

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="not found"):
            get_config_path(str(tmp_path / "absent.yaml"))

    def test_directory_is_not_a_config(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError):
            get_config_path(str(tmp_path))

    def test_argument_beats_env(
        self, write_config, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        monkeypatch.setenv(CONFIG_PATH_ENV, str(tmp_path / "absent.yaml"))
        path = write_config(FULL_YAML)
        assert get_config_path(str(path)) == path


class TestSyntaxErrors:
    """Tests for unparseable files."""

    def test_yaml(self, write_config) -> None:
        path = write_config("settings:\n  period: [1\n")
        with pytest.raises(ConfigSyntaxError) as exc_info:
            load_config(str(path))
        assert exc_info.value.file_path == str(path)
        assert exc_info.value.line_number is not None

    def test_json_trailing_comma(self, write_config) -> None:
        path = write_config('{"settings": {"period": 1,}}', "config.json")
        with pytest.raises(ConfigSyntaxError) as exc_info:
            load_config(str(path))
        assert exc_info.value.line_number == 1
        assert "JSON" in str(exc_info.value)

    def test_top_level_must_be_mapping(self, write_config) -> None:
        with pytest.raises(ConfigValidationError, match="mapping"):
            load_config(str(write_config("- period: 1\n")))


class TestValidationErrors:
    """Tests for invalid values, with the messages users see."""

    def test_missing_period(self, write_config) -> None:
        with pytest.raises(ConfigValidationError) as exc_info:
            load_config(str(write_config("metrics: []\n")))
        assert "settings.period" in exc_info.value.message
        assert exc_info.value.suggestion is not None

    def test_empty_file_needs_period(self, write_config) -> None:
        with pytest.raises(ConfigValidationError, match="settings.period"):
            load_config(str(write_config("")))

    @pytest.mark.parametrize("period", ["0", "-3"])
    def test_period_must_be_positive(self, write_config, period: str) -> None:
        with pytest.raises(ConfigValidationError) as exc_info:
            load_config(str(write_config(f"settings:\n  period: {period}\n")))
        assert "settings.period" in exc_info.value.message
        assert exc_info.value.suggestion == "Value must be greater than 0"

    def test_period_must_be_number(self, write_config) -> None:
        with pytest.raises(ConfigValidationError, match="Invalid number"):
            load_config(str(write_config("settings:\n  period: often\n")))

    def test_unknown_metric_type(self, write_config) -> None:
        path = write_config("settings: {period: 1}\nmetrics:\n  - type: cpus\n")
        with pytest.raises(ConfigValidationError) as exc_info:
            load_config(str(path))
        assert "metrics.0" in exc_info.value.message
        assert exc_info.value.suggestion == "Did you mean 'cpu'?"

    def test_metric_without_type(self, write_config) -> None:
        path = write_config("settings: {period: 1}\nmetrics:\n  - ids: [0]\n")
        with pytest.raises(ConfigValidationError, match="Missing 'type'"):
            load_config(str(path))

    def test_unknown_output_type(self, write_config) -> None:
        path = write_config("settings: {period: 1}\noutputs:\n  - type: syslog\n")
        with pytest.raises(ConfigValidationError) as exc_info:
            load_config(str(path))
        assert "console" in exc_info.value.suggestion

    def test_file_output_needs_path(self, write_config) -> None:
        path = write_config("settings: {period: 1}\noutputs:\n  - type: file\n")
        with pytest.raises(ConfigValidationError, match="outputs.0.path"):
            load_config(str(path))

    def test_negative_core_id(self, write_config) -> None:
        path = write_config("settings: {period: 1}\nmetrics:\n  - type: cpu\n    ids: [0, -1]\n")
        with pytest.raises(ConfigValidationError, match="metrics.0.ids.1"):
            load_config(str(path))

    def test_unknown_key_suggestion(self, write_config) -> None:
        path = write_config("settings:\n  period: 1\n  proc_rot: /host/proc\n")
        with pytest.raises(ConfigValidationError) as exc_info:
            load_config(str(path))
        assert "settings.proc_rot" in exc_info.value.message
        assert exc_info.value.suggestion == "Did you mean 'proc_root'?"

    def test_invalid_log_level(self, write_config) -> None:
        path = write_config("settings: {period: 1}\nlogging:\n  level: LOUD\n")
        with pytest.raises(ConfigValidationError, match="logging.level"):
            load_config(str(path))

    def test_error_message_names_file(self, write_config) -> None:
        path = write_config("settings:\n  period: 0\n")
        with pytest.raises(ConfigValidationError) as exc_info:
            load_config(str(path))
        assert str(exc_info.value).startswith(f"Error in {path}:")


class TestMetricSelection:
    """Tests for merging metric entries into collector arguments."""

    def make(self, metrics: list[dict]) -> Config:
        return Config.model_validate({"settings": {"period": 1}, "metrics": metrics})

    def test_absent_types_are_none(self) -> None:
        config = self.make([])
        assert config.cpu_core_ids() is None
        assert config.memory_specs() is None

    def test_cpu_without_ids_is_aggregate_only(self) -> None:
        config = self.make([{"type": "cpu"}])
        assert config.cpu_core_ids() == []
        assert config.memory_specs() is None

    def test_entries_merged_in_order_without_repeats(self) -> None:
        config = self.make([
            {"type": "cpu", "ids": [2, 0]},
            {"type": "memory", "spec": ["free"]},
            {"type": "cpu", "ids": [0, 1, 2]},
            {"type": "memory", "spec": ["used", "free"]},
        ])
        assert config.cpu_core_ids() == [2, 0, 1]
        assert config.memory_specs() == ["free", "used"]


class TestHelpers:
    """Tests for merge and environment expansion helpers."""

    def test_deep_merge_nested(self) -> None:
        base = {"settings": {"period": 1, "proc_root": "/proc"}, "metrics": [1]}
        merged = deep_merge(base, {"settings": {"period": 5}, "metrics": [2]})
        assert merged == {"settings": {"period": 5, "proc_root": "/proc"}, "metrics": [2]}
        assert base["settings"]["period"] == 1

    def test_expand_default(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("UNSET_VAR", raising=False)
        assert expand_env_vars("${UNSET_VAR:-fallback}") == "fallback"

    def test_unknown_var_kept(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("UNSET_VAR", raising=False)
        assert expand_env_vars(["${UNSET_VAR}", 3]) == ["${UNSET_VAR}", 3]
