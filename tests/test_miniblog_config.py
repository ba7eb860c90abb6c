"""Tests for src/config.py — MiniblogConfig, TOML loading, overrides."""

from pathlib import Path

import pytest
from miniblog.config import MiniblogConfig, load_config, merge_cli_overrides

ENV_VARS = (
    "MINIBLOG_STORAGE_BACKEND",
    "MINIBLOG_STORAGE_DIR",
    "MINIBLOG_S3_BUCKET",
    "MINIBLOG_S3_PREFIX",
    "MINIBLOG_S3_ENDPOINT_URL",
    "MINIBLOG_PUBLIC_URL",
    "MINIBLOG_BASE_URL",
    "MINIBLOG_USERNAME",
    "MINIBLOG_PASSWORD_HASH",
    "MINIBLOG_SALT",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Remove env vars that _apply_env_vars reads so tests see TOML values."""
    for key in ENV_VARS:
        monkeypatch.delenv(key, raising=False)


class TestDefaults:
    def test_blog_defaults(self):
        cfg = MiniblogConfig()
        assert cfg.blog.posts_per_page == 2
        assert cfg.blog.comments_close_after_days == 10

    def test_storage_defaults(self):
        cfg = MiniblogConfig()
        assert cfg.storage.backend == "file"
        assert cfg.storage.directory == "./posts"


class TestLoadConfig:
    def test_explicit_file(self, tmp_path: Path):
        path = tmp_path / "blog.toml"
        path.write_text(
            '[blog]\nname = "My Blog"\n\n[storage]\nbackend = "s3"\nbucket = "posts"\n',
            encoding="utf-8",
        )
        cfg = load_config(path)
        assert cfg.blog.name == "My Blog"
        assert cfg.storage.backend == "s3"
        assert cfg.storage.bucket == "posts"
        assert cfg.blog.posts_per_page == 2

    def test_missing_explicit_file_uses_defaults(self, tmp_path: Path):
        cfg = load_config(tmp_path / "nope.toml")
        assert cfg == MiniblogConfig()

    def test_invalid_toml_uses_defaults(self, tmp_path: Path):
        path = tmp_path / "bad.toml"
        path.write_text("[blog\nname=", encoding="utf-8")
        assert load_config(path) == MiniblogConfig()

    def test_finds_file_in_cwd(self, tmp_path: Path, monkeypatch):
        (tmp_path / ".miniblog.toml").write_text('[user]\nusername = "owner"\n', encoding="utf-8")
        monkeypatch.chdir(tmp_path)
        assert load_config().user.username == "owner"

    def test_env_overrides_file(self, tmp_path: Path, monkeypatch):
        path = tmp_path / "blog.toml"
        path.write_text('[storage]\ndirectory = "/from/file"\n', encoding="utf-8")
        monkeypatch.setenv("MINIBLOG_STORAGE_DIR", "/from/env")
        monkeypatch.setenv("MINIBLOG_S3_BUCKET", "env-bucket")

        cfg = load_config(path)
        assert cfg.storage.directory == "/from/env"
        assert cfg.storage.bucket == "env-bucket"


class TestMergeCliOverrides:
    def test_applies_set_values(self):
        cfg = merge_cli_overrides(MiniblogConfig(), storage_dir="/cli", base_url="https://x")
        assert cfg.storage.directory == "/cli"
        assert cfg.blog.base_url == "https://x"

    def test_ignores_none_and_unknown(self):
        cfg = merge_cli_overrides(MiniblogConfig(), storage_dir=None, unknown="x")
        assert cfg == MiniblogConfig()
