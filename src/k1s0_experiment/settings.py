"""クライアント設定の型定義と YAML 読み込み"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, ValidationError

from .exceptions import ExperimentError, ExperimentErrorCodes
from .project_config import DEFAULT_CLIENT_NAME, DEFAULT_CLIENT_VERSION


class ClientSection(BaseModel):
    """イベントに載せるクライアント識別情報。"""

    name: str = DEFAULT_CLIENT_NAME
    version: str = DEFAULT_CLIENT_VERSION


class LogSection(BaseModel):
    """ログ設定。"""

    level: str = "INFO"
    format: Literal["json", "text"] = "json"


class DatafileSection(BaseModel):
    """静的データファイル設定。"""

    path: str = ""


class ClientSettings(BaseModel):
    """クライアント設定全体。"""

    client: ClientSection = Field(default_factory=ClientSection)
    log: LogSection = Field(default_factory=LogSection)
    datafile: DatafileSection | None = None

    @classmethod
    def from_yaml(cls, path: Path, overlay_path: Path | None = None) -> ClientSettings:
        """YAML から設定を読み込む。

        overlay_path が存在すれば、その内容をセクション単位で上書きする。

        Raises:
            ExperimentError: 読み込み、YAML 解析、検証のいずれかに失敗した場合
        """
        data = _load_mapping(path)
        if overlay_path is not None and overlay_path.exists():
            data = _overlay(data, _load_mapping(overlay_path))
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ExperimentError(
                code=ExperimentErrorCodes.VALIDATION,
                message=f"invalid client settings in {path}: {e}",
                cause=e,
            ) from e


def _overlay(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    # ネストした辞書のみ再帰的に重ねる。それ以外の値は overlay 側で置き換える
    merged = {**base, **overlay}
    for key in base.keys() & overlay.keys():
        if isinstance(base[key], dict) and isinstance(overlay[key], dict):
            merged[key] = _overlay(base[key], overlay[key])
    return merged


def _load_mapping(path: Path) -> dict[str, Any]:
    try:
        with path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except OSError as e:
        raise ExperimentError(
            code=ExperimentErrorCodes.READ_FILE,
            message=f"cannot read settings file: {path}",
            cause=e,
        ) from e
    except yaml.YAMLError as e:
        raise ExperimentError(
            code=ExperimentErrorCodes.PARSE_YAML,
            message=f"malformed YAML in settings file: {path}",
            cause=e,
        ) from e
    if not isinstance(data, dict):
        raise ExperimentError(
            code=ExperimentErrorCodes.VALIDATION,
            message=f"settings file must contain a mapping: {path}",
        )
    return data
