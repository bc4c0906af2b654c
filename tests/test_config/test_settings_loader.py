"""配置模块测试"""

import pytest

from ytree.config import (
    AppSettings,
    CacheSettings,
    ConfigLoader,
    LoggingSettings,
    TreeDataSettings,
    load_yaml_config,
)
from ytree.tree import TreeDataOptions


SAMPLE_YAML = """
tree:
  label_field: title
  cache_lifetime: 3600
  icons:
    default: fa fa-file
    dir: fa fa-folder-o
cache:
  backend: redis
  redis_url: redis://localhost:6379/0
logging:
  level: DEBUG
"""


class TestSettings:
    """Settings 类测试"""

    def test_tree_defaults_match_options(self):
        """测试配置默认值与 TreeDataOptions 一致"""
        options = TreeDataOptions.from_settings(TreeDataSettings())
        defaults = TreeDataOptions()

        for name in ("id_field", "label_field", "parent_field", "icon_field", "sort_field",
                     "recursive_parents", "cache_enabled", "cache_lifetime", "icons",
                     "query_parent_param", "query_selected_param", "selected_list_param"):
            assert getattr(options, name) == getattr(defaults, name)
        assert options.cache_key_prefix.resolve() == defaults.cache_key_prefix.resolve()

    def test_tree_env(self, monkeypatch):
        """测试从环境变量读取"""
        monkeypatch.setenv("YTREE_TREE_LABEL_FIELD", "title")
        monkeypatch.setenv("YTREE_TREE_CACHE_ENABLED", "false")

        settings = TreeDataSettings()
        assert settings.label_field == "title"
        assert settings.cache_enabled is False

    def test_cache_defaults(self):
        settings = CacheSettings()

        assert settings.backend == "memory"
        assert settings.ttl == 86400
        assert settings.redis_prefix == "ytree:"

    def test_logging_env(self, monkeypatch):
        monkeypatch.setenv("YTREE_LOG_LEVEL", "DEBUG")
        assert LoggingSettings().level == "DEBUG"

    def test_app_settings_nested(self):
        settings = AppSettings()

        assert isinstance(settings.tree, TreeDataSettings)
        assert isinstance(settings.cache, CacheSettings)
        assert isinstance(settings.logging, LoggingSettings)


class TestConfigLoader:
    """ConfigLoader 测试"""

    def setup_method(self):
        ConfigLoader.clear_cache()

    def teardown_method(self):
        ConfigLoader.clear_cache()

    def test_load(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text(SAMPLE_YAML, encoding="utf-8")

        config = ConfigLoader.load(str(path))
        assert config["tree"]["label_field"] == "title"

    def test_load_relative_with_base_dir(self, tmp_path):
        (tmp_path / "settings.yaml").write_text(SAMPLE_YAML, encoding="utf-8")

        config = ConfigLoader.load("settings.yaml", base_dir=str(tmp_path))
        assert config["cache"]["backend"] == "redis"

    def test_load_cached(self, tmp_path):
        """测试缓存与重新加载"""
        path = tmp_path / "settings.yaml"
        path.write_text("tree:\n  label_field: a\n", encoding="utf-8")
        ConfigLoader.load(str(path))

        path.write_text("tree:\n  label_field: b\n", encoding="utf-8")
        assert ConfigLoader.load(str(path))["tree"]["label_field"] == "a"
        assert ConfigLoader.reload(str(path))["tree"]["label_field"] == "b"

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")

        assert ConfigLoader.load(str(path)) == {}

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError) as exc_info:
            ConfigLoader.load(str(tmp_path / "missing.yaml"))

        assert "配置文件不存在" in str(exc_info.value)


class TestLoadYamlConfig:
    """load_yaml_config 测试"""

    def setup_method(self):
        ConfigLoader.clear_cache()

    def teardown_method(self):
        ConfigLoader.clear_cache()

    def test_app_settings(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text(SAMPLE_YAML, encoding="utf-8")

        settings = load_yaml_config(str(path), AppSettings)

        assert settings.tree.label_field == "title"
        assert settings.tree.cache_lifetime == 3600
        assert settings.tree.icons == {"default": "fa fa-file", "dir": "fa fa-folder-o"}
        assert settings.tree.sort_field == "sort_order"
        assert settings.cache.backend == "redis"
        assert settings.logging.level == "DEBUG"

    def test_overrides_do_not_pollute_cache(self, tmp_path):
        """测试覆盖参数不会修改已缓存的配置"""
        path = tmp_path / "tree.yaml"
        path.write_text("label_field: title\n", encoding="utf-8")

        settings = load_yaml_config(str(path), TreeDataSettings, sort_field="position")

        assert settings.label_field == "title"
        assert settings.sort_field == "position"
        assert "sort_field" not in ConfigLoader.load(str(path))

    def test_options_from_yaml(self, tmp_path):
        """测试从 YAML 配置创建构建选项"""
        path = tmp_path / "settings.yaml"
        path.write_text(SAMPLE_YAML, encoding="utf-8")

        options = TreeDataOptions.from_settings(load_yaml_config(str(path), AppSettings).tree)

        assert options.label_field == "title"
        assert options.icons["dir"] == "fa fa-folder-o"
