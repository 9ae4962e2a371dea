"""フィーチャー変数値の選択と厳密な型変換"""

from __future__ import annotations

import math
import re

from .exceptions import ExperimentError, ExperimentErrorCodes
from .models import Variable, VariableType, Variation

VariableValue = bool | float | int | str

_INTEGER_RE = re.compile(r"[+-]?[0-9]+")
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1
_INT64_DIGITS = 19
_DOUBLE_RE = re.compile(r"[+-]?([0-9]+(\.[0-9]*)?|\.[0-9]+)([eE][+-]?[0-9]+)?")


def select_raw_value(variable: Variable, variation: Variation | None) -> str:
    """使用する生の値を選ぶ。

    バリエーションがフィーチャーを有効化し、かつこの変数を上書きしている場合のみ
    上書き値を使い、それ以外は宣言のデフォルト値を使う。
    """
    if variation is not None and variation.feature_enabled:
        override = variation.variables.get(variable.id)
        if override is not None:
            return override.value
    return variable.default_value


def check_type(variable: Variable, requested: VariableType) -> None:
    """宣言型と要求型が一致しなければ TYPE_MISMATCH を送出する。"""
    if variable.type is None or variable.type != requested:
        declared = variable.type.value if variable.type is not None else "unset"
        raise ExperimentError(
            code=ExperimentErrorCodes.TYPE_MISMATCH,
            message=(
                f"variable {variable.key!r} is declared as {declared}, "
                f"requested {requested.value}"
            ),
        )


def _parse_failure(raw: str, variable_type: VariableType) -> ExperimentError:
    return ExperimentError(
        code=ExperimentErrorCodes.PARSE_FAILURE,
        message=f"cannot parse {raw!r} as {variable_type.value}",
    )


def parse_value(raw: str, variable_type: VariableType) -> VariableValue:
    """生の文字列を宣言型の値に厳密に変換する。

    Raises:
        ExperimentError: 変換できない場合 (PARSE_FAILURE)
    """
    if variable_type is VariableType.BOOLEAN:
        if raw == "true":
            return True
        if raw == "false":
            return False
        raise _parse_failure(raw, variable_type)
    if variable_type is VariableType.INTEGER:
        if _INTEGER_RE.fullmatch(raw) is None:
            raise _parse_failure(raw, variable_type)
        digits = raw.lstrip("+-").lstrip("0")
        if len(digits) > _INT64_DIGITS:
            raise _parse_failure(raw, variable_type)
        value = int(digits or "0")
        if raw.startswith("-"):
            value = -value
        if not _INT64_MIN <= value <= _INT64_MAX:
            raise _parse_failure(raw, variable_type)
        return value
    if variable_type is VariableType.DOUBLE:
        if _DOUBLE_RE.fullmatch(raw) is None:
            raise _parse_failure(raw, variable_type)
        number = float(raw)
        if math.isinf(number):
            raise _parse_failure(raw, variable_type)
        return number
    return raw


def render_value(value: VariableValue) -> str:
    """変換済みの値を文字列に戻す。"""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return repr(value)
    return str(value)


def evaluate_variable(
    variable: Variable, requested: VariableType, variation: Variation | None
) -> VariableValue:
    """型チェック、値の選択、変換を順に行う。"""
    check_type(variable, requested)
    return parse_value(select_raw_value(variable, variation), requested)
