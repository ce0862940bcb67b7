import pytest
import yaml
from market_indicators.utils.config import Config, ConfigError


class TestConfig:
    def test_load_valid_config(self, tmp_path):
        """Test loading a valid config file."""
        config_content = {
            "indicators": {"rsi_periods": [14, 21]},
            "rsi": {"levels": {"overbought": 70, "oversold": 30}},
        }
        config_file = tmp_path / "config.yaml"
        config_file.write_text(yaml.dump(config_content))

        config = Config(str(config_file))

        assert config.get("indicators.rsi_periods") == [14, 21]
        assert config.get("rsi.levels.overbought") == 70
        assert config.path == str(config_file)

    def test_get_with_default(self, tmp_path):
        """Test missing keys return the default."""
        config_file = tmp_path / "config.yaml"
        config_file.write_text(yaml.dump({"indicators": {"ma_periods": [25]}}))

        config = Config(str(config_file))

        assert config.get("nonexistent.key", "default") == "default"
        assert config.get("nonexistent.key") is None
        assert config.get("indicators.ma_periods.deeper", 1) == 1

    def test_getitem_and_contains(self):
        config = Config.from_dict({"indicators": {"ma_periods": [25]}})
        assert config["indicators.ma_periods"] == [25]
        assert "indicators.ma_periods" in config
        assert "indicators.rsi_periods" not in config
        with pytest.raises(KeyError):
            config["indicators.rsi_periods"]

    def test_empty_file_is_empty_config(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("")
        assert Config(str(config_file)).get("anything") is None

    def test_missing_file_raises_error(self):
        """Test a missing file raises ConfigError."""
        with pytest.raises(ConfigError, match="Config file not found"):
            Config("/nonexistent/path/config.yaml")

    def test_invalid_yaml_raises_error(self, tmp_path):
        """Test malformed YAML raises ConfigError."""
        config_file = tmp_path / "config.yaml"
        config_file.write_text("invalid: yaml: content: [")

        with pytest.raises(ConfigError, match="Invalid YAML"):
            Config(str(config_file))

    def test_non_mapping_root_raises_error(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("- a\n- b\n")

        with pytest.raises(ConfigError, match="must be a mapping"):
            Config(str(config_file))

    def test_from_dict_rejects_non_mapping(self):
        with pytest.raises(ConfigError):
            Config.from_dict(["a"])

    def test_bundled_indicator_config(self):
        """Test the sample config file in the repository loads."""
        from pathlib import Path

        path = Path(__file__).resolve().parent.parent / "config" / "indicators.yaml"
        config = Config(str(path))
        assert config.get("indicators.macd_params_list") == [[12, 26, 9]]
