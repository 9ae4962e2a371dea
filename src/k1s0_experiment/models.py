"""experiment データモデル"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class VariableType(str, Enum):
    """フィーチャー変数の宣言型。"""

    BOOLEAN = "boolean"
    DOUBLE = "double"
    INTEGER = "integer"
    STRING = "string"


class DecisionSource(str, Enum):
    """フィーチャー判定の出所。"""

    FEATURE_TEST = "feature-test"
    ROLLOUT = "rollout"


@dataclass(frozen=True)
class UserContext:
    """判定対象ユーザー。"""

    id: str = ""
    attributes: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Variable:
    """フィーチャーに宣言された型付き変数。値は常に文字列で保持する。"""

    id: str
    key: str
    type: VariableType | None = None
    default_value: str = ""


@dataclass(frozen=True)
class VariationVariable:
    """バリエーションによる変数値の上書き。"""

    id: str
    value: str


@dataclass(frozen=True)
class Variation:
    """実験のバリエーション。"""

    id: str
    key: str
    feature_enabled: bool = False
    # variable id -> 上書き値
    variables: dict[str, VariationVariable] = field(default_factory=dict)


@dataclass(frozen=True)
class Experiment:
    """実験。"""

    id: str
    key: str = ""
    layer_id: str = ""
    # variation key -> Variation
    variations: dict[str, Variation] = field(default_factory=dict)


@dataclass(frozen=True)
class Feature:
    """フィーチャー。"""

    id: str
    key: str
    feature_experiments: list[Experiment] = field(default_factory=list)
    # variable key -> Variable
    variables: dict[str, Variable] = field(default_factory=dict)


@dataclass(frozen=True)
class Event:
    """コンバージョンイベント定義。"""

    id: str
    key: str
    experiment_ids: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ExperimentDecision:
    """実験判定結果。variation が None の場合は未割り当て。"""

    experiment: Experiment | None = None
    variation: Variation | None = None
    reason: str = ""
    error: Exception | None = field(default=None, compare=False)


@dataclass(frozen=True)
class FeatureDecision:
    """フィーチャー判定結果。"""

    experiment: Experiment | None = None
    variation: Variation | None = None
    source: DecisionSource | None = None
    reason: str = ""
    error: Exception | None = field(default=None, compare=False)
