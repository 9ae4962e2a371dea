"""experiment ライブラリの例外型定義"""

from __future__ import annotations


class ExperimentError(Exception):
    """experiment ライブラリのエラー基底クラス。"""

    def __init__(
        self,
        code: str,
        message: str,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


class PanicRecoveredError(ExperimentError):
    """公開 API の境界で捕捉した想定外の例外。

    str() は元の例外の文字列表現そのものを返す。
    """

    def __init__(self, cause: BaseException) -> None:
        super().__init__(
            code=ExperimentErrorCodes.PANIC_RECOVERED,
            message=str(cause),
        )
        self.__cause__ = cause

    def __str__(self) -> str:
        return self.message


class ExperimentErrorCodes:
    """ExperimentError のエラーコード定数。"""

    CONFIG_UNAVAILABLE: str = "CONFIG_UNAVAILABLE"
    LOOKUP_NOT_FOUND: str = "LOOKUP_NOT_FOUND"
    TYPE_MISMATCH: str = "TYPE_MISMATCH"
    PARSE_FAILURE: str = "PARSE_FAILURE"
    DECISION_NON_FATAL: str = "DECISION_NON_FATAL"
    DECISION_UNAVAILABLE: str = "DECISION_UNAVAILABLE"
    PANIC_RECOVERED: str = "PANIC_RECOVERED"
    CLIENT_CLOSED: str = "CLIENT_CLOSED"
    EVENT_DISPATCH: str = "EVENT_DISPATCH_ERROR"
    INVALID_DATAFILE: str = "INVALID_DATAFILE"
    READ_FILE: str = "READ_FILE_ERROR"
    PARSE_YAML: str = "PARSE_YAML_ERROR"
    VALIDATION: str = "VALIDATION_ERROR"
