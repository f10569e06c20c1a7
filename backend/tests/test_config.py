"""Unit tests for settings path derivation."""

from betscope.config import CacheConfig, Settings


def test_cache_dirs_follow_data_dir(tmp_path):
    settings = Settings(data_dir=tmp_path / "data")

    assert settings.store_dir == (tmp_path / "data" / "research_cache").resolve()
    assert settings.client_cache_dir == (tmp_path / "data" / "client_cache").resolve()


def test_client_cache_dir_name_is_configurable(tmp_path):
    settings = Settings(
        data_dir=tmp_path / "data",
        cache=CacheConfig(client_cache_dir_name="browser_cache"),
    )

    assert settings.client_cache_dir.parent == settings.data_dir
    assert settings.client_cache_dir.name == "browser_cache"
