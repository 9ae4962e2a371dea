"""公開 API の戻り値型"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Generic, TypeVar

from .exceptions import ExperimentError

T = TypeVar("T")


@dataclass(frozen=True)
class ClientResult(Generic[T]):
    """値とエラーの組。error が None でない場合 value はゼロ値。"""

    value: T
    error: ExperimentError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class FeatureVariablesResult:
    """全フィーチャー変数の評価結果。

    error があっても variables には評価できた変数が残る。
    """

    enabled: bool = False
    variables: dict[str, str] = field(default_factory=dict)
    error: ExperimentError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None
