"""インメモリのコラボレーター実装"""

from __future__ import annotations

from .decision import ExperimentDecisionContext, FeatureDecisionContext
from .event import UserEvent
from .exceptions import ExperimentError, ExperimentErrorCodes
from .models import ExperimentDecision, FeatureDecision, UserContext


class InMemoryEventProcessor:
    """テスト用インメモリイベントプロセッサー。受け取ったイベントを記録する。"""

    def __init__(self) -> None:
        self.events: list[UserEvent] = []

    def process_event(self, event: UserEvent) -> None:
        self.events.append(event)

    def clear(self) -> None:
        self.events.clear()


class InMemoryDecisionService:
    """テスト用インメモリ判定サービス。

    キー単位、またはキーとユーザー ID の組で判定結果を固定する。
    ユーザー単位の設定がキー単位の設定より優先される。
    """

    def __init__(self) -> None:
        self._feature_decisions: dict[tuple[str, str | None], FeatureDecision] = {}
        self._experiment_variations: dict[tuple[str, str | None], str] = {}

    def set_feature_decision(
        self, feature_key: str, decision: FeatureDecision, user_id: str | None = None
    ) -> None:
        """フィーチャー判定結果を設定する。"""
        self._feature_decisions[(feature_key, user_id)] = decision

    def set_experiment_variation(
        self, experiment_key: str, variation_key: str, user_id: str | None = None
    ) -> None:
        """実験のバリエーションをキーで固定する。"""
        self._experiment_variations[(experiment_key, user_id)] = variation_key

    async def get_feature_decision(
        self, context: FeatureDecisionContext, user_context: UserContext
    ) -> FeatureDecision:
        key = context.feature.key
        decision = self._feature_decisions.get((key, user_context.id))
        if decision is None:
            decision = self._feature_decisions.get((key, None))
        return decision if decision is not None else FeatureDecision(reason="no decision configured")

    async def get_experiment_decision(
        self, context: ExperimentDecisionContext, user_context: UserContext
    ) -> ExperimentDecision:
        experiment = context.experiment
        variation_key = self._experiment_variations.get((experiment.key, user_context.id))
        if variation_key is None:
            variation_key = self._experiment_variations.get((experiment.key, None))
        if variation_key is None:
            return ExperimentDecision(experiment=experiment, reason="no variation configured")

        variation = experiment.variations.get(variation_key)
        if variation is None:
            # 割り当て不能だが判定結果としては有効
            return ExperimentDecision(
                experiment=experiment,
                reason="forced variation not found",
                error=ExperimentError(
                    code=ExperimentErrorCodes.LOOKUP_NOT_FOUND,
                    message=f"variation not found: {experiment.key}.{variation_key}",
                ),
            )
        return ExperimentDecision(experiment=experiment, variation=variation, reason="forced")
