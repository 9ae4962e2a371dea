"""DecisionService プロトコルと判定コンテキスト"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from .models import (
    Experiment,
    ExperimentDecision,
    Feature,
    FeatureDecision,
    UserContext,
)
from .project_config import ProjectConfig


@dataclass(frozen=True)
class FeatureDecisionContext:
    """フィーチャー判定の入力。"""

    feature: Feature
    project_config: ProjectConfig


@dataclass(frozen=True)
class ExperimentDecisionContext:
    """実験判定の入力。"""

    experiment: Experiment
    project_config: ProjectConfig


class DecisionService(Protocol):
    """判定エンジンプロトコル。

    判定結果と同時に報告する非致命的な診断は decision.error に載せる。
    判定結果を返せない場合は ExperimentError を送出する。
    """

    async def get_feature_decision(
        self, context: FeatureDecisionContext, user_context: UserContext
    ) -> FeatureDecision: ...

    async def get_experiment_decision(
        self, context: ExperimentDecisionContext, user_context: UserContext
    ) -> ExperimentDecision: ...
