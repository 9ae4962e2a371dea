"""ProjectConfig プロトコルとデータファイル実装"""

from __future__ import annotations

from typing import Protocol

from pydantic import ValidationError

from .datafile import Datafile, ExperimentSection, FeatureFlagSection
from .exceptions import ExperimentError, ExperimentErrorCodes
from .models import (
    Event,
    Experiment,
    Feature,
    Variable,
    VariableType,
    Variation,
    VariationVariable,
)

DEFAULT_CLIENT_NAME = "k1s0-experiment"
DEFAULT_CLIENT_VERSION = "0.1.0"


class ProjectConfig(Protocol):
    """設定スナップショットプロトコル。読み取り専用として扱う。"""

    @property
    def project_id(self) -> str: ...

    @property
    def account_id(self) -> str: ...

    @property
    def revision(self) -> str: ...

    @property
    def anonymize_ip(self) -> bool: ...

    @property
    def bot_filtering(self) -> bool: ...

    @property
    def client_name(self) -> str: ...

    @property
    def client_version(self) -> str: ...

    def get_feature_by_key(self, feature_key: str) -> Feature: ...

    def get_experiment_by_key(self, experiment_key: str) -> Experiment: ...

    def get_variable_by_key(self, feature_key: str, variable_key: str) -> Variable: ...

    def get_event_by_key(self, event_key: str) -> Event: ...

    def get_attribute_id(self, attribute_key: str) -> str: ...

    def get_feature_list(self) -> list[Feature]: ...


class ProjectConfigManager(Protocol):
    """設定スナップショットの供給元プロトコル。

    取得に失敗した場合は ExperimentError を送出する。
    """

    def get_config(self) -> ProjectConfig | None: ...


def _not_found(kind: str, key: str) -> ExperimentError:
    return ExperimentError(
        code=ExperimentErrorCodes.LOOKUP_NOT_FOUND,
        message=f"{kind} not found: {key}",
    )


def _variable_type(raw: str) -> VariableType | None:
    try:
        return VariableType(raw)
    except ValueError:
        return None


def _build_experiment(section: ExperimentSection) -> Experiment:
    variations = {
        v.key: Variation(
            id=v.id,
            key=v.key,
            feature_enabled=v.feature_enabled,
            variables={
                vv.id: VariationVariable(id=vv.id, value=vv.value) for vv in v.variables
            },
        )
        for v in section.variations
    }
    return Experiment(
        id=section.id,
        key=section.key,
        layer_id=section.layer_id,
        variations=variations,
    )


def _build_feature(
    section: FeatureFlagSection, experiments_by_id: dict[str, Experiment]
) -> Feature:
    return Feature(
        id=section.id,
        key=section.key,
        feature_experiments=[
            experiments_by_id[eid]
            for eid in section.experiment_ids
            if eid in experiments_by_id
        ],
        variables={
            v.key: Variable(
                id=v.id,
                key=v.key,
                type=_variable_type(v.type),
                default_value=v.default_value,
            )
            for v in section.variables
        },
    )


class DatafileProjectConfig:
    """データファイルから構築した不変の ProjectConfig 実装。"""

    def __init__(
        self,
        datafile: Datafile,
        client_name: str = DEFAULT_CLIENT_NAME,
        client_version: str = DEFAULT_CLIENT_VERSION,
    ) -> None:
        self._datafile = datafile
        self._client_name = client_name
        self._client_version = client_version

        experiments = [_build_experiment(e) for e in datafile.experiments]
        experiments_by_id = {e.id: e for e in experiments}
        self._experiments = {e.key: e for e in experiments}
        self._features = {
            f.key: _build_feature(f, experiments_by_id) for f in datafile.feature_flags
        }
        self._events = {
            e.key: Event(id=e.id, key=e.key, experiment_ids=list(e.experiment_ids))
            for e in datafile.events
        }
        self._attribute_ids = {a.key: a.id for a in datafile.attributes}

    @classmethod
    def from_datafile(
        cls,
        datafile: str | bytes,
        client_name: str = DEFAULT_CLIENT_NAME,
        client_version: str = DEFAULT_CLIENT_VERSION,
    ) -> DatafileProjectConfig:
        """JSON データファイルを検証して ProjectConfig を返す。

        Raises:
            ExperimentError: データファイルが不正な場合
        """
        try:
            parsed = Datafile.model_validate_json(datafile)
        except ValidationError as e:
            raise ExperimentError(
                code=ExperimentErrorCodes.INVALID_DATAFILE,
                message=f"Datafile validation failed: {e}",
                cause=e,
            ) from e
        return cls(parsed, client_name=client_name, client_version=client_version)

    @property
    def project_id(self) -> str:
        return self._datafile.project_id

    @property
    def account_id(self) -> str:
        return self._datafile.account_id

    @property
    def revision(self) -> str:
        return self._datafile.revision

    @property
    def anonymize_ip(self) -> bool:
        return self._datafile.anonymize_ip

    @property
    def bot_filtering(self) -> bool:
        return self._datafile.bot_filtering

    @property
    def client_name(self) -> str:
        return self._client_name

    @property
    def client_version(self) -> str:
        return self._client_version

    def get_feature_by_key(self, feature_key: str) -> Feature:
        feature = self._features.get(feature_key)
        if feature is None:
            raise _not_found("feature", feature_key)
        return feature

    def get_experiment_by_key(self, experiment_key: str) -> Experiment:
        experiment = self._experiments.get(experiment_key)
        if experiment is None:
            raise _not_found("experiment", experiment_key)
        return experiment

    def get_variable_by_key(self, feature_key: str, variable_key: str) -> Variable:
        feature = self.get_feature_by_key(feature_key)
        variable = feature.variables.get(variable_key)
        if variable is None:
            raise _not_found("variable", f"{feature_key}.{variable_key}")
        return variable

    def get_event_by_key(self, event_key: str) -> Event:
        event = self._events.get(event_key)
        if event is None:
            raise _not_found("event", event_key)
        return event

    def get_attribute_id(self, attribute_key: str) -> str:
        """属性 ID を返す。未定義の場合は空文字列。"""
        return self._attribute_ids.get(attribute_key, "")

    def get_feature_list(self) -> list[Feature]:
        return list(self._features.values())


class StaticProjectConfigManager:
    """単一のスナップショットを返し続ける ProjectConfigManager。"""

    def __init__(self, config: ProjectConfig) -> None:
        self._config = config

    @classmethod
    def from_datafile(
        cls,
        datafile: str | bytes,
        client_name: str = DEFAULT_CLIENT_NAME,
        client_version: str = DEFAULT_CLIENT_VERSION,
    ) -> StaticProjectConfigManager:
        return cls(
            DatafileProjectConfig.from_datafile(
                datafile, client_name=client_name, client_version=client_version
            )
        )

    def get_config(self) -> ProjectConfig:
        return self._config
