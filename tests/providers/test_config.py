"""Unit tests for engine configuration."""

import pytest
import yaml
from pydantic import ValidationError

from tagscope.providers.base import ProviderType
from tagscope.providers.config import ConfigManager, EngineConfig, load_config
from tagscope.providers.errors import ConfigurationError


ENV_VARS = [
    "TAGSCOPE_MAX_DEPTH",
    "TAGSCOPE_MASK_USER_DATA",
    "TAGSCOPE_INCLUDE_RAW",
    "TAGSCOPE_DISABLED_PROVIDERS",
]


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestEngineConfig:
    """Test EngineConfig validation."""

    def test_defaults(self):
        config = EngineConfig()
        assert config.max_depth == 10
        assert config.mask_user_data is True
        assert config.include_raw is False
        assert config.provider_types == []
        assert config.is_enabled("FACEBOOKPIXEL")

    def test_max_depth_bounds(self):
        with pytest.raises(ValidationError):
            EngineConfig(max_depth=0)
        with pytest.raises(ValidationError):
            EngineConfig(max_depth=51)

    def test_provider_keys_normalized(self):
        config = EngineConfig(providers={"facebookpixel": False, "TikTok": {"enabled": True}})
        assert config.is_enabled("FACEBOOKPIXEL") is False
        assert config.is_enabled("facebookpixel") is False
        assert config.is_enabled("TIKTOK") is True

    def test_provider_info(self):
        config = EngineConfig(providers={"linkedin": False})
        assert config.provider_info() == {"LINKEDIN": {"enabled": False}}

    def test_provider_types(self):
        config = EngineConfig(provider_types=["marketing", "tag-manager"])
        assert config.provider_types == [ProviderType.MARKETING, ProviderType.TAG_MANAGER]

    def test_unknown_provider_type_rejected(self):
        with pytest.raises(ValidationError):
            EngineConfig(provider_types=["advertising"])


class TestConfigManager:
    """Test ConfigManager loading."""

    def test_load_without_file(self):
        config = ConfigManager().load_config()
        assert config == EngineConfig()

    def test_load_yaml(self, tmp_path):
        path = tmp_path / "tagscope.yaml"
        path.write_text(yaml.safe_dump({
            "max_depth": 4,
            "mask_user_data": False,
            "providers": {"tiktok": {"enabled": False}},
            "provider_types": ["analytics"],
        }))

        config = ConfigManager(path).load_config()
        assert config.max_depth == 4
        assert config.mask_user_data is False
        assert config.is_enabled("TIKTOK") is False
        assert config.provider_types == [ProviderType.ANALYTICS]

    def test_empty_yaml_uses_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert ConfigManager(path).load_config() == EngineConfig()

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            ConfigManager(tmp_path / "missing.yaml").load_config()

    def test_non_mapping_file(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigurationError):
            ConfigManager(path).load_config()

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("max_depth: [unclosed\n")
        with pytest.raises(ConfigurationError):
            ConfigManager(path).load_config()

    def test_invalid_values(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("max_depth: 500\n")
        with pytest.raises(ConfigurationError):
            ConfigManager(path).load_config()

    def test_environment_overrides(self, tmp_path, monkeypatch):
        path = tmp_path / "tagscope.yaml"
        path.write_text("max_depth: 4\nproviders:\n  tiktok:\n    enabled: false\n")

        monkeypatch.setenv("TAGSCOPE_MAX_DEPTH", "7")
        monkeypatch.setenv("TAGSCOPE_MASK_USER_DATA", "false")
        monkeypatch.setenv("TAGSCOPE_INCLUDE_RAW", "yes")
        monkeypatch.setenv("TAGSCOPE_DISABLED_PROVIDERS", "pinterest, twitter")

        config = ConfigManager(path).load_config()
        assert config.max_depth == 7
        assert config.mask_user_data is False
        assert config.include_raw is True
        assert config.is_enabled("TIKTOK") is False
        assert config.is_enabled("PINTEREST") is False
        assert config.is_enabled("TWITTER") is False
        assert config.is_enabled("LINKEDIN") is True

    def test_get_config_caches(self):
        manager = ConfigManager()
        assert manager.get_config() is manager.get_config()

    def test_validate_config(self):
        manager = ConfigManager()
        assert manager.validate_config({"max_depth": 5}) == []
        errors = manager.validate_config({"max_depth": "deep"})
        assert len(errors) == 1
        assert errors[0].startswith("max_depth: ")

    def test_create_default_config(self, tmp_path):
        path = tmp_path / "nested" / "tagscope.yaml"
        manager = ConfigManager()
        manager.create_default_config(path)

        assert path.exists()
        assert ConfigManager(path).load_config() == EngineConfig()

    def test_load_config_helper(self, tmp_path):
        path = tmp_path / "tagscope.yaml"
        path.write_text("include_raw: true\n")
        assert load_config(path).include_raw is True
