"""テスト用コラボレーターとフィクスチャ"""

from __future__ import annotations

from k1s0_experiment import (
    Event,
    Experiment,
    ExperimentDecision,
    ExperimentDecisionContext,
    ExperimentError,
    ExperimentErrorCodes,
    Feature,
    FeatureDecision,
    FeatureDecisionContext,
    UserContext,
    Variable,
    VariableType,
    Variation,
    VariationVariable,
)

PANIC_MESSAGE = "I'm panicking"


def _not_found(key: str) -> ExperimentError:
    return ExperimentError(ExperimentErrorCodes.LOOKUP_NOT_FOUND, f"not found: {key}")


class MockProjectConfig:
    """ルックアップ呼び出しを記録するスナップショット。"""

    project_id = "15389410617"
    account_id = "8362480420"
    revision = "7"
    anonymize_ip = True
    bot_filtering = False
    client_name = "k1s0-experiment"
    client_version = "1.0.0"

    def __init__(
        self,
        features: list[Feature] | None = None,
        experiments: list[Experiment] | None = None,
        events: list[Event] | None = None,
        attribute_ids: dict[str, str] | None = None,
    ) -> None:
        self.features = {f.key: f for f in features or []}
        self.experiments = {e.key: e for e in experiments or []}
        self.events = {e.key: e for e in events or []}
        self.attribute_ids = attribute_ids or {}
        self.calls: list[tuple[str, ...]] = []

    def get_feature_by_key(self, feature_key: str) -> Feature:
        self.calls.append(("get_feature_by_key", feature_key))
        if feature_key not in self.features:
            raise _not_found(feature_key)
        return self.features[feature_key]

    def get_experiment_by_key(self, experiment_key: str) -> Experiment:
        self.calls.append(("get_experiment_by_key", experiment_key))
        if experiment_key not in self.experiments:
            raise _not_found(experiment_key)
        return self.experiments[experiment_key]

    def get_variable_by_key(self, feature_key: str, variable_key: str) -> Variable:
        self.calls.append(("get_variable_by_key", feature_key, variable_key))
        feature = self.get_feature_by_key(feature_key)
        if variable_key not in feature.variables:
            raise _not_found(variable_key)
        return feature.variables[variable_key]

    def get_event_by_key(self, event_key: str) -> Event:
        self.calls.append(("get_event_by_key", event_key))
        if event_key not in self.events:
            raise ExperimentError(ExperimentErrorCodes.LOOKUP_NOT_FOUND, "No conversion")
        return self.events[event_key]

    def get_attribute_id(self, attribute_key: str) -> str:
        return self.attribute_ids.get(attribute_key, "")

    def get_feature_list(self) -> list[Feature]:
        self.calls.append(("get_feature_list",))
        return list(self.features.values())


class MockConfigManager:
    """get_config の呼び出し回数を記録する設定マネージャー。"""

    def __init__(
        self,
        config: MockProjectConfig | None = None,
        error: ExperimentError | None = None,
    ) -> None:
        self.config = config
        self.error = error
        self.calls = 0

    def get_config(self) -> MockProjectConfig | None:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.config


class PanickingConfigManager:
    """常に想定外の例外を送出する設定マネージャー。"""

    def get_config(self) -> MockProjectConfig:
        raise RuntimeError(PANIC_MESSAGE)


class MockDecisionService:
    """判定呼び出しを記録する判定サービス。"""

    def __init__(
        self,
        feature_decisions: dict[str, FeatureDecision | None] | None = None,
        experiment_decisions: dict[str, ExperimentDecision | None] | None = None,
        panic: bool = False,
    ) -> None:
        self.feature_decisions = feature_decisions or {}
        self.experiment_decisions = experiment_decisions or {}
        self.panic = panic
        self.feature_calls: list[tuple[FeatureDecisionContext, UserContext]] = []
        self.experiment_calls: list[tuple[ExperimentDecisionContext, UserContext]] = []

    async def get_feature_decision(
        self, context: FeatureDecisionContext, user_context: UserContext
    ) -> FeatureDecision | None:
        self.feature_calls.append((context, user_context))
        if self.panic:
            raise RuntimeError(PANIC_MESSAGE)
        return self.feature_decisions.get(context.feature.key, FeatureDecision())

    async def get_experiment_decision(
        self, context: ExperimentDecisionContext, user_context: UserContext
    ) -> ExperimentDecision | None:
        self.experiment_calls.append((context, user_context))
        if self.panic:
            raise RuntimeError(PANIC_MESSAGE)
        return self.experiment_decisions.get(context.experiment.key, ExperimentDecision())


def make_variation(
    key: str,
    feature_enabled: bool,
    variables: list[VariationVariable] | None = None,
) -> Variation:
    return Variation(
        id=f"id-{key}",
        key=key,
        feature_enabled=feature_enabled,
        variables={v.id: v for v in variables or []},
    )


def make_experiment(key: str, variations: list[Variation]) -> Experiment:
    return Experiment(
        id=f"id-{key}",
        key=key,
        layer_id=f"layer-{key}",
        variations={v.key: v for v in variations},
    )


def make_feature(
    key: str,
    experiment: Experiment | None = None,
    variables: list[Variable] | None = None,
) -> Feature:
    return Feature(
        id=f"id-{key}",
        key=key,
        feature_experiments=[experiment] if experiment is not None else [],
        variables={v.key: v for v in variables or []},
    )


def make_variable(
    type: VariableType | None, default_value: str, key: str = "test_variable_key", id: str = "1"
) -> Variable:
    return Variable(id=id, key=key, type=type, default_value=default_value)


DATAFILE = """
{
  "version": "4",
  "projectId": "15389410617",
  "accountId": "8362480420",
  "revision": "7",
  "anonymizeIP": true,
  "botFiltering": false,
  "experiments": [
    {
      "id": "15402980349",
      "key": "background_experiment",
      "layerId": "15399420423",
      "variations": [
        {"id": "15374531212", "key": "variation_a", "featureEnabled": true,
         "variables": [{"id": "9001", "value": "5"}]},
        {"id": "15409101122", "key": "variation_b", "featureEnabled": false}
      ]
    }
  ],
  "featureFlags": [
    {
      "id": "15389410618",
      "key": "checkout_flow",
      "experimentIds": ["15402980349", "missing-experiment"],
      "variables": [
        {"id": "9001", "key": "max_items", "type": "integer", "defaultValue": "3"},
        {"id": "9002", "key": "layout", "type": "json", "defaultValue": "{}"}
      ]
    }
  ],
  "events": [
    {"id": "15368860886", "key": "sample_conversion", "experimentIds": ["15402980349"]}
  ],
  "attributes": [
    {"id": "15390300008", "key": "country"}
  ]
}
"""
