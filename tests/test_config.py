"""Tests for TOML configuration loading."""

from pathlib import Path

import pytest

from attribute_declarations.config.loader import load_config
from attribute_declarations.config.models import AttributeDeclarationsConfig


@pytest.fixture
def config_file(tmp_path) -> Path:
    path = tmp_path / "attribute_declarations.toml"
    path.write_text(
        'database_url = "sqlite:///app.db"\n'
        'models = ["app.models", "billing.models"]\n'
        'versions_dir = "db/versions"\n'
        "render_as_batch = true\n"
    )
    return path


class TestLoadConfig:
    """Loading attribute_declarations.toml."""

    def test_loads_all_keys(self, config_file, monkeypatch) -> None:
        monkeypatch.delenv("DATABASE_URL", raising=False)

        config = load_config(config_file)

        assert isinstance(config, AttributeDeclarationsConfig)
        assert config.database_url == "sqlite:///app.db"
        assert config.models == ["app.models", "billing.models"]
        assert config.versions_dir == "db/versions"
        assert config.render_as_batch is True

    def test_defaults(self, tmp_path, monkeypatch) -> None:
        monkeypatch.delenv("DATABASE_URL", raising=False)
        path = tmp_path / "attribute_declarations.toml"
        path.write_text('models = ["app.models"]\n')

        config = load_config(path)

        assert config.database_url is None
        assert config.versions_dir == "migrations/versions"
        assert config.render_as_batch is False

    def test_environment_overrides_url(self, config_file, monkeypatch) -> None:
        monkeypatch.setenv("DATABASE_URL", "postgresql://localhost/app")

        assert load_config(config_file).database_url == "postgresql://localhost/app"

    def test_default_path_is_working_directory(self, config_file, monkeypatch) -> None:
        monkeypatch.delenv("DATABASE_URL", raising=False)
        monkeypatch.chdir(config_file.parent)

        assert load_config().models == ["app.models", "billing.models"]

    def test_missing_file(self, tmp_path) -> None:
        with pytest.raises(FileNotFoundError, match="Config not found"):
            load_config(tmp_path / "missing.toml")

    def test_invalid_toml(self, tmp_path) -> None:
        path = tmp_path / "attribute_declarations.toml"
        path.write_text("models = [\n")

        with pytest.raises(ValueError, match="Invalid TOML"):
            load_config(path)

    def test_invalid_value(self, tmp_path, monkeypatch) -> None:
        monkeypatch.delenv("DATABASE_URL", raising=False)
        path = tmp_path / "attribute_declarations.toml"
        path.write_text('render_as_batch = "sometimes"\n')

        with pytest.raises(ValueError, match="Invalid config"):
            load_config(path)
