"""ユーザーイベントの構築と EventProcessor プロトコル"""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Protocol

from .models import Event, Experiment, UserContext, Variation
from .project_config import ProjectConfig

RESERVED_ATTRIBUTE_PREFIX = "$opt_"
BOT_FILTERING_ATTRIBUTE = "$opt_bot_filtering"
CUSTOM_ATTRIBUTE_TYPE = "custom"
REVENUE_TAG = "revenue"
VALUE_TAG = "value"


@dataclass(frozen=True)
class EventContext:
    """イベントに付与するプロジェクト情報。"""

    project_id: str
    revision: str = ""
    account_id: str = ""
    anonymize_ip: bool = False
    bot_filtering: bool = False
    client_name: str = ""
    client_version: str = ""


@dataclass(frozen=True)
class VisitorAttribute:
    """イベントに載せるユーザー属性。"""

    entity_id: str
    key: str
    value: Any
    type: str = CUSTOM_ATTRIBUTE_TYPE


@dataclass(frozen=True)
class ImpressionEvent:
    """実験への露出イベント。"""

    entity_id: str
    experiment_id: str
    experiment_key: str
    variation_id: str
    variation_key: str
    attributes: list[VisitorAttribute] = field(default_factory=list)


@dataclass(frozen=True)
class ConversionEvent:
    """コンバージョンイベント。"""

    entity_id: str
    key: str
    attributes: list[VisitorAttribute] = field(default_factory=list)
    tags: dict[str, Any] = field(default_factory=dict)
    revenue: int | None = None
    value: float | None = None


@dataclass(frozen=True)
class UserEvent:
    """EventProcessor に渡すユーザーイベント。"""

    event_context: EventContext
    visitor_id: str
    impression: ImpressionEvent | None = None
    conversion: ConversionEvent | None = None
    uuid: str = field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: int = field(default_factory=lambda: int(time.time() * 1000))


class EventProcessor(Protocol):
    """イベント送出先プロトコル。配送の完了を待たずに返る。"""

    def process_event(self, event: UserEvent) -> None: ...


def create_event_context(project_config: ProjectConfig) -> EventContext:
    """スナップショットから EventContext を構築する。"""
    return EventContext(
        project_id=project_config.project_id,
        revision=project_config.revision,
        account_id=project_config.account_id,
        anonymize_ip=project_config.anonymize_ip,
        bot_filtering=project_config.bot_filtering,
        client_name=project_config.client_name,
        client_version=project_config.client_version,
    )


def build_visitor_attributes(
    project_config: ProjectConfig, attributes: dict[str, Any]
) -> list[VisitorAttribute]:
    """ユーザー属性をイベント用の属性リストに変換する。

    データファイルに定義のない属性は捨てる。ただし "$opt_" で始まる予約属性は
    キーをそのまま entity_id として送る。
    """
    visitor_attributes: list[VisitorAttribute] = []
    for key, value in attributes.items():
        entity_id = project_config.get_attribute_id(key)
        if not entity_id:
            if not key.startswith(RESERVED_ATTRIBUTE_PREFIX):
                continue
            entity_id = key
        visitor_attributes.append(VisitorAttribute(entity_id=entity_id, key=key, value=value))

    if project_config.bot_filtering:
        visitor_attributes.append(
            VisitorAttribute(
                entity_id=BOT_FILTERING_ATTRIBUTE,
                key=BOT_FILTERING_ATTRIBUTE,
                value=True,
            )
        )
    return visitor_attributes


def create_impression_user_event(
    project_config: ProjectConfig,
    experiment: Experiment,
    variation: Variation,
    user_context: UserContext,
) -> UserEvent:
    """露出イベントを構築する。"""
    impression = ImpressionEvent(
        entity_id=experiment.layer_id,
        experiment_id=experiment.id,
        experiment_key=experiment.key,
        variation_id=variation.id,
        variation_key=variation.key,
        attributes=build_visitor_attributes(project_config, user_context.attributes),
    )
    return UserEvent(
        event_context=create_event_context(project_config),
        visitor_id=user_context.id,
        impression=impression,
    )


def _revenue(tags: dict[str, Any]) -> int | None:
    value = tags.get(REVENUE_TAG)
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


def _numeric_value(tags: dict[str, Any]) -> float | None:
    value = tags.get(VALUE_TAG)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def create_conversion_user_event(
    project_config: ProjectConfig,
    event: Event,
    user_context: UserContext,
    tags: dict[str, Any] | None = None,
) -> UserEvent:
    """コンバージョンイベントを構築する。"""
    tags = dict(tags or {})
    conversion = ConversionEvent(
        entity_id=event.id,
        key=event.key,
        attributes=build_visitor_attributes(project_config, user_context.attributes),
        tags=tags,
        revenue=_revenue(tags),
        value=_numeric_value(tags),
    )
    return UserEvent(
        event_context=create_event_context(project_config),
        visitor_id=user_context.id,
        conversion=conversion,
    )
