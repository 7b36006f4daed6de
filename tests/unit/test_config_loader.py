from __future__ import annotations

from pathlib import Path

import pytest

from pricing_import.config.loader import ConfigError, load_config
from pricing_import.models.config_models import ImportConfig


def test_load_config_values(write_config: Path):
    cfg = load_config(write_config)
    assert cfg.chunk_size == 2
    assert cfg.queue_directory == "./queue"
    assert cfg.conflict_columns == ("brand", "product_name", "size_text")
    assert cfg.parser.header_scan_rows == 5
    assert cfg.parser.section_blank_ratio == 0.7
    assert cfg.database.user == "appuser"
    assert cfg.database.port == 5432


def test_empty_file_gives_defaults(temp_workdir: Path):
    path = temp_workdir / "config" / "import.yml"
    path.write_text("", encoding="utf-8")
    assert load_config(path) == ImportConfig()


def test_partial_parser_section(temp_workdir: Path):
    path = temp_workdir / "config" / "import.yml"
    path.write_text("parser:\n  header_scan_rows: 8\n", encoding="utf-8")
    cfg = load_config(path)
    assert cfg.parser.header_scan_rows == 8
    assert cfg.parser.header_min_matches == 3
    assert cfg.chunk_size == 250


def test_missing_file(temp_workdir: Path):
    with pytest.raises(ConfigError, match="config file not found"):
        load_config(temp_workdir / "config" / "nope.yml")


def test_invalid_yaml(temp_workdir: Path):
    path = temp_workdir / "config" / "import.yml"
    path.write_text("chunk_size: [1, 2\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="invalid yaml"):
        load_config(path)


def test_top_level_must_be_mapping(temp_workdir: Path):
    path = temp_workdir / "config" / "import.yml"
    path.write_text("- 1\n- 2\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="top level must be a mapping"):
        load_config(path)
