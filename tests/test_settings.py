"""クライアント設定の読み込みのユニットテスト"""

from pathlib import Path

import pytest
from k1s0_experiment import ClientSettings, ExperimentError, ExperimentErrorCodes


def test_defaults() -> None:
    settings = ClientSettings()
    assert settings.client.name == "k1s0-experiment"
    assert settings.log.level == "INFO"
    assert settings.log.format == "json"
    assert settings.datafile is None


def test_from_yaml(tmp_path: Path) -> None:
    """設定ファイルの読み込み。"""
    config_file = tmp_path / "config.yaml"
    config_file.write_text(
        "client:\n  name: storefront\n  version: 2.0.0\n"
        "datafile:\n  path: /etc/datafile.json\n"
    )
    settings = ClientSettings.from_yaml(config_file)
    assert settings.client.name == "storefront"
    assert settings.client.version == "2.0.0"
    assert settings.datafile is not None
    assert settings.datafile.path == "/etc/datafile.json"


def test_from_yaml_empty_file(tmp_path: Path) -> None:
    config_file = tmp_path / "config.yaml"
    config_file.write_text("")
    assert ClientSettings.from_yaml(config_file) == ClientSettings()


def test_overlay_replaces_only_given_keys(tmp_path: Path) -> None:
    """環境別設定はセクション内の指定キーだけを上書きする。"""
    base_file = tmp_path / "base.yaml"
    base_file.write_text(
        "client:\n  name: base\n  version: 1.0.0\nlog:\n  level: INFO\n"
    )
    overlay_file = tmp_path / "dev.yaml"
    overlay_file.write_text("client:\n  version: 1.1.0-dev\nlog:\n  level: DEBUG\n  format: text\n")
    settings = ClientSettings.from_yaml(base_file, overlay_file)
    assert settings.client.name == "base"
    assert settings.client.version == "1.1.0-dev"
    assert settings.log.level == "DEBUG"
    assert settings.log.format == "text"


def test_overlay_not_exists(tmp_path: Path) -> None:
    """overlay_path が存在しない場合は base のみ使用。"""
    base_file = tmp_path / "base.yaml"
    base_file.write_text("client:\n  name: fallback\n")
    settings = ClientSettings.from_yaml(base_file, tmp_path / "nonexistent.yaml")
    assert settings.client.name == "fallback"


def test_overlay_can_clear_section(tmp_path: Path) -> None:
    base_file = tmp_path / "base.yaml"
    base_file.write_text("datafile:\n  path: /etc/datafile.json\n")
    overlay_file = tmp_path / "test.yaml"
    overlay_file.write_text("datafile: null\n")
    assert ClientSettings.from_yaml(base_file, overlay_file).datafile is None


def test_file_not_found(tmp_path: Path) -> None:
    with pytest.raises(ExperimentError) as exc_info:
        ClientSettings.from_yaml(tmp_path / "missing.yaml")
    assert exc_info.value.code == ExperimentErrorCodes.READ_FILE


def test_invalid_yaml(tmp_path: Path) -> None:
    bad_file = tmp_path / "bad.yaml"
    bad_file.write_text("client: {invalid: yaml: content:\n")
    with pytest.raises(ExperimentError) as exc_info:
        ClientSettings.from_yaml(bad_file)
    assert exc_info.value.code == ExperimentErrorCodes.PARSE_YAML


def test_validation_error(tmp_path: Path) -> None:
    bad_file = tmp_path / "bad.yaml"
    bad_file.write_text("log:\n  format: xml\n")
    with pytest.raises(ExperimentError) as exc_info:
        ClientSettings.from_yaml(bad_file)
    assert exc_info.value.code == ExperimentErrorCodes.VALIDATION


def test_top_level_must_be_mapping(tmp_path: Path) -> None:
    base_file = tmp_path / "base.yaml"
    base_file.write_text("client:\n  name: base\n")
    overlay_file = tmp_path / "list.yaml"
    overlay_file.write_text("- client\n- log\n")
    with pytest.raises(ExperimentError) as exc_info:
        ClientSettings.from_yaml(base_file, overlay_file)
    assert exc_info.value.code == ExperimentErrorCodes.VALIDATION
