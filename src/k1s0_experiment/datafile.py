"""データファイルのスキーマ定義（pydantic BaseModel）"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class _DatafileModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class VariationVariableSection(_DatafileModel):
    """バリエーションの変数上書き。"""

    id: str
    value: str


class VariationSection(_DatafileModel):
    """バリエーション。"""

    id: str
    key: str
    feature_enabled: bool = Field(default=False, alias="featureEnabled")
    variables: list[VariationVariableSection] = Field(default_factory=list)


class ExperimentSection(_DatafileModel):
    """実験。"""

    id: str
    key: str
    layer_id: str = Field(default="", alias="layerId")
    status: str = "Running"
    variations: list[VariationSection] = Field(default_factory=list)


class VariableSection(_DatafileModel):
    """フィーチャー変数。型は未知の値を許容し、スナップショット構築時に解釈する。"""

    id: str
    key: str
    type: str = ""
    default_value: str = Field(default="", alias="defaultValue")


class FeatureFlagSection(_DatafileModel):
    """フィーチャーフラグ。"""

    id: str
    key: str
    rollout_id: str = Field(default="", alias="rolloutId")
    experiment_ids: list[str] = Field(default_factory=list, alias="experimentIds")
    variables: list[VariableSection] = Field(default_factory=list)


class EventSection(_DatafileModel):
    """コンバージョンイベント。"""

    id: str
    key: str
    experiment_ids: list[str] = Field(default_factory=list, alias="experimentIds")


class AttributeSection(_DatafileModel):
    """ユーザー属性。"""

    id: str
    key: str


class Datafile(_DatafileModel):
    """データファイル全体。"""

    version: str = "4"
    project_id: str = Field(alias="projectId")
    account_id: str = Field(default="", alias="accountId")
    revision: str = ""
    anonymize_ip: bool = Field(default=False, alias="anonymizeIP")
    bot_filtering: bool = Field(default=False, alias="botFiltering")
    experiments: list[ExperimentSection] = Field(default_factory=list)
    feature_flags: list[FeatureFlagSection] = Field(
        default_factory=list, alias="featureFlags"
    )
    events: list[EventSection] = Field(default_factory=list)
    attributes: list[AttributeSection] = Field(default_factory=list)
