"""ExperimentClient: 実験判定とフィーチャー変数評価のファサード"""

from __future__ import annotations

import functools
from typing import Any, Awaitable, Callable, TypeVar

import structlog

from .decision import DecisionService, ExperimentDecisionContext, FeatureDecisionContext
from .event import (
    EventProcessor,
    UserEvent,
    create_conversion_user_event,
    create_impression_user_event,
)
from .exceptions import ExperimentError, ExperimentErrorCodes, PanicRecoveredError
from .execution import ExecutionContext
from .metrics import decisions_total, errors_total, events_total
from .models import (
    DecisionSource,
    ExperimentDecision,
    FeatureDecision,
    UserContext,
    VariableType,
    Variation,
)
from .project_config import ProjectConfig, ProjectConfigManager
from .result import ClientResult, FeatureVariablesResult
from .variables import (
    VariableValue,
    evaluate_variable,
    parse_value,
    render_value,
    select_raw_value,
)

T = TypeVar("T")
D = TypeVar("D", FeatureDecision, ExperimentDecision)

# 公開メソッドの本体は (値, 送出するイベント) を返す
_Outcome = tuple[T, list[UserEvent]]


def _none() -> None:
    return None


def _public(
    zero: Callable[[], Any],
) -> Callable[[Callable[..., Awaitable[_Outcome[Any]]]], Callable[..., Awaitable[ClientResult[Any]]]]:
    """公開 API の境界を張るデコレーター。

    ExperimentError はそのまま、想定外の例外は PanicRecoveredError に変換し、
    いずれの場合も値はゼロ値にする。イベントは本体が最後まで成功した場合にだけ送出する。
    """

    def decorator(
        fn: Callable[..., Awaitable[_Outcome[Any]]],
    ) -> Callable[..., Awaitable[ClientResult[Any]]]:
        operation = fn.__name__

        @functools.wraps(fn)
        async def wrapper(self: ExperimentClient, *args: Any, **kwargs: Any) -> ClientResult[Any]:
            decisions_total.add(1, {"operation": operation})
            try:
                self._ensure_open()
                value, events = await fn(self, *args, **kwargs)
                if events:
                    # close() 完了後にイベントが届かないよう送出直前にも確認する
                    self._ensure_open()
            except ExperimentError as e:
                return ClientResult(value=zero(), error=self._fail(operation, e))
            except Exception as e:
                return ClientResult(value=zero(), error=self._recover(operation, e))
            self._dispatch(operation, events)
            return ClientResult(value=value)

        return wrapper

    return decorator


class ExperimentClient:
    """設定・判定・イベント送出の各コラボレーターを束ねるクライアント。

    公開メソッドは例外を送出せず、ClientResult (値, エラー) を返す。
    """

    def __init__(
        self,
        config_manager: ProjectConfigManager,
        decision_service: DecisionService,
        event_processor: EventProcessor | None = None,
        execution_ctx: ExecutionContext | None = None,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self._config_manager = config_manager
        self._decision_service = decision_service
        self._event_processor = event_processor
        self._execution_ctx = execution_ctx or ExecutionContext()
        self._logger = logger or structlog.stdlib.get_logger(__name__)

    @property
    def execution_ctx(self) -> ExecutionContext:
        return self._execution_ctx

    @_public(_none)
    async def track(
        self,
        event_key: str,
        user_context: UserContext,
        tags: dict[str, Any] | None = None,
    ) -> _Outcome[None]:
        """コンバージョンイベントを送出する。未定義のイベントキーは何もしない。"""
        project_config = self._get_project_config()
        try:
            event = project_config.get_event_by_key(event_key)
        except ExperimentError as e:
            self._logger.warning("event not found, nothing tracked", event_key=event_key, error=str(e))
            return None, []
        user_event = create_conversion_user_event(project_config, event, user_context, tags)
        return None, [user_event]

    @_public(str)
    async def activate(self, experiment_key: str, user_context: UserContext) -> _Outcome[str]:
        """バリエーションを判定し、割り当てがあれば露出イベントを送出する。"""
        context, variation = await self._get_experiment_variation(experiment_key, user_context)
        if context is None or variation is None:
            return "", []
        impression = create_impression_user_event(
            context.project_config, context.experiment, variation, user_context
        )
        return variation.key, [impression]

    @_public(str)
    async def get_variation(self, experiment_key: str, user_context: UserContext) -> _Outcome[str]:
        """バリエーションキーを返す。イベントは送出しない。"""
        _, variation = await self._get_experiment_variation(experiment_key, user_context)
        return (variation.key if variation is not None else ""), []

    @_public(bool)
    async def is_feature_enabled(self, feature_key: str, user_context: UserContext) -> _Outcome[bool]:
        return await self._is_feature_enabled(feature_key, user_context)

    @_public(list)
    async def get_enabled_features(self, user_context: UserContext) -> _Outcome[list[str]]:
        """ユーザーに対して有効なフィーチャーキーの一覧を返す。

        個々のフィーチャーの判定エラーはログに残してスキップする。
        """
        project_config = self._get_project_config()
        enabled: list[str] = []
        events: list[UserEvent] = []
        for feature in project_config.get_feature_list():
            try:
                is_enabled, feature_events = await self._is_feature_enabled(
                    feature.key, user_context, project_config
                )
            except ExperimentError as e:
                self._logger.warning(
                    "skipping feature after decision error", feature_key=feature.key, error=str(e)
                )
                continue
            events.extend(feature_events)
            if is_enabled:
                enabled.append(feature.key)
        return enabled, events

    @_public(_none)
    async def get_feature_decision(
        self, feature_key: str, user_context: UserContext
    ) -> _Outcome[FeatureDecision | None]:
        _, decision = await self._get_feature_decision(feature_key, user_context)
        return decision, []

    @_public(bool)
    async def get_feature_variable_boolean(
        self, feature_key: str, variable_key: str, user_context: UserContext
    ) -> _Outcome[bool]:
        value = await self._get_feature_variable(
            feature_key, variable_key, user_context, VariableType.BOOLEAN
        )
        return value, []

    @_public(float)
    async def get_feature_variable_double(
        self, feature_key: str, variable_key: str, user_context: UserContext
    ) -> _Outcome[float]:
        value = await self._get_feature_variable(
            feature_key, variable_key, user_context, VariableType.DOUBLE
        )
        return value, []

    @_public(int)
    async def get_feature_variable_integer(
        self, feature_key: str, variable_key: str, user_context: UserContext
    ) -> _Outcome[int]:
        value = await self._get_feature_variable(
            feature_key, variable_key, user_context, VariableType.INTEGER
        )
        return value, []

    @_public(str)
    async def get_feature_variable_string(
        self, feature_key: str, variable_key: str, user_context: UserContext
    ) -> _Outcome[str]:
        value = await self._get_feature_variable(
            feature_key, variable_key, user_context, VariableType.STRING
        )
        return value, []

    async def get_all_feature_variables(
        self, feature_key: str, user_context: UserContext
    ) -> FeatureVariablesResult:
        """フィーチャーの全変数を宣言型で評価し、文字列にして返す。

        変換に失敗した変数は結果から除き、最初のエラーを結果と一緒に返す。
        """
        operation = "get_all_feature_variables"
        decisions_total.add(1, {"operation": operation})
        try:
            self._ensure_open()
            context, decision = await self._get_feature_decision(feature_key, user_context)
            variation = decision.variation
            enabled = variation.feature_enabled if variation is not None else False
            variables: dict[str, str] = {}
            first_error: ExperimentError | None = None
            for variable in context.feature.variables.values():
                raw = select_raw_value(variable, variation)
                if variable.type is None:
                    self._logger.warning(
                        "variable type is unset, returning raw value",
                        feature_key=feature_key,
                        variable_key=variable.key,
                    )
                    variables[variable.key] = raw
                    continue
                try:
                    variables[variable.key] = render_value(parse_value(raw, variable.type))
                except ExperimentError as e:
                    self._logger.warning(
                        "skipping variable that failed to parse",
                        feature_key=feature_key,
                        variable_key=variable.key,
                        error=str(e),
                    )
                    if first_error is None:
                        first_error = e
        except ExperimentError as e:
            return FeatureVariablesResult(error=self._fail(operation, e))
        except Exception as e:
            return FeatureVariablesResult(error=self._recover(operation, e))
        if first_error is not None:
            errors_total.add(1, {"operation": operation, "code": first_error.code})
        return FeatureVariablesResult(enabled=enabled, variables=variables, error=first_error)

    @_public(_none)
    async def get_project_config(self) -> _Outcome[ProjectConfig | None]:
        return self._get_project_config(), []

    async def close(self) -> None:
        """キャンセルを通知し、登録済みのバックグラウンド処理の完了を待つ。"""
        await self._execution_ctx.terminate_and_wait()

    def _ensure_open(self) -> None:
        if self._execution_ctx.cancelled:
            raise ExperimentError(
                code=ExperimentErrorCodes.CLIENT_CLOSED,
                message="client is closed",
            )

    def _get_project_config(self) -> ProjectConfig:
        project_config = self._config_manager.get_config()
        if project_config is None:
            raise ExperimentError(
                code=ExperimentErrorCodes.CONFIG_UNAVAILABLE,
                message="no project config available",
            )
        return project_config

    def _accept_decision(self, decision: D | None, key: str) -> D:
        """判定結果があれば診断エラーは無視して採用する。"""
        if decision is None:
            raise ExperimentError(
                code=ExperimentErrorCodes.DECISION_UNAVAILABLE,
                message=f"no decision returned for {key}",
            )
        if decision.error is not None:
            self._logger.warning(
                "ignoring non-fatal decision error",
                key=key,
                code=ExperimentErrorCodes.DECISION_NON_FATAL,
                error=str(decision.error),
            )
        return decision

    async def _get_feature_decision(
        self,
        feature_key: str,
        user_context: UserContext,
        project_config: ProjectConfig | None = None,
    ) -> tuple[FeatureDecisionContext, FeatureDecision]:
        if project_config is None:
            project_config = self._get_project_config()
        feature = project_config.get_feature_by_key(feature_key)
        context = FeatureDecisionContext(feature=feature, project_config=project_config)
        decision = await self._decision_service.get_feature_decision(context, user_context)
        return context, self._accept_decision(decision, feature_key)

    async def _get_experiment_variation(
        self, experiment_key: str, user_context: UserContext
    ) -> tuple[ExperimentDecisionContext | None, Variation | None]:
        project_config = self._get_project_config()
        try:
            experiment = project_config.get_experiment_by_key(experiment_key)
        except ExperimentError as e:
            self._logger.warning(
                "experiment not found, no variation assigned",
                experiment_key=experiment_key,
                error=str(e),
            )
            return None, None
        context = ExperimentDecisionContext(experiment=experiment, project_config=project_config)
        decision = await self._decision_service.get_experiment_decision(context, user_context)
        return context, self._accept_decision(decision, experiment_key).variation

    async def _is_feature_enabled(
        self,
        feature_key: str,
        user_context: UserContext,
        project_config: ProjectConfig | None = None,
    ) -> _Outcome[bool]:
        context, decision = await self._get_feature_decision(
            feature_key, user_context, project_config
        )
        variation = decision.variation
        if variation is None:
            return False, []
        events: list[UserEvent] = []
        if decision.source is DecisionSource.FEATURE_TEST and decision.experiment is not None:
            events.append(
                create_impression_user_event(
                    context.project_config, decision.experiment, variation, user_context
                )
            )
        return variation.feature_enabled, events

    async def _get_feature_variable(
        self,
        feature_key: str,
        variable_key: str,
        user_context: UserContext,
        variable_type: VariableType,
    ) -> VariableValue:
        context, decision = await self._get_feature_decision(feature_key, user_context)
        variable = context.project_config.get_variable_by_key(feature_key, variable_key)
        return evaluate_variable(variable, variable_type, decision.variation)

    def _dispatch(self, operation: str, events: list[UserEvent]) -> None:
        """確定した結果のイベントを送出する。送出先の失敗は結果に影響させない。"""
        if not events:
            return
        if self._event_processor is None:
            self._logger.debug("no event processor configured, dropping events", count=len(events))
            return
        for event in events:
            kind = "impression" if event.impression else "conversion"
            try:
                self._event_processor.process_event(event)
            except Exception as e:
                errors_total.add(
                    1, {"operation": operation, "code": ExperimentErrorCodes.EVENT_DISPATCH}
                )
                self._logger.error(
                    "event processor failed",
                    operation=operation,
                    kind=kind,
                    error=str(e),
                    exc_info=e,
                )
            else:
                events_total.add(1, {"kind": kind})

    def _fail(self, operation: str, error: ExperimentError) -> ExperimentError:
        errors_total.add(1, {"operation": operation, "code": error.code})
        self._logger.error(
            "operation failed", operation=operation, code=error.code, error=str(error)
        )
        return error

    def _recover(self, operation: str, cause: Exception) -> PanicRecoveredError:
        error = PanicRecoveredError(cause)
        errors_total.add(1, {"operation": operation, "code": error.code})
        self._logger.error(
            "recovered from unexpected error", operation=operation, error=str(cause), exc_info=cause
        )
        return error
