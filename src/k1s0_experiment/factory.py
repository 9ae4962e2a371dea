"""ExperimentClient の生成"""

from __future__ import annotations

from pathlib import Path

from .client import ExperimentClient
from .decision import DecisionService
from .event import EventProcessor
from .exceptions import ExperimentError, ExperimentErrorCodes
from .execution import ExecutionContext
from .logger import new_logger
from .project_config import ProjectConfigManager, StaticProjectConfigManager
from .settings import ClientSettings


class ExperimentClientFactory:
    """設定からクライアントを組み立てるファクトリー。

    生成するクライアントごとに新しい ExecutionContext を割り当てる。
    """

    def __init__(
        self,
        settings: ClientSettings | None = None,
        datafile: str | bytes | None = None,
    ) -> None:
        self._settings = settings or ClientSettings()
        self._datafile = datafile

    def client(
        self,
        config_manager: ProjectConfigManager,
        decision_service: DecisionService,
        event_processor: EventProcessor | None = None,
    ) -> ExperimentClient:
        logger = new_logger(
            level=self._settings.log.level,
            format=self._settings.log.format,
            client_name=self._settings.client.name,
            client_version=self._settings.client.version,
        )
        return ExperimentClient(
            config_manager=config_manager,
            decision_service=decision_service,
            event_processor=event_processor,
            execution_ctx=ExecutionContext(),
            logger=logger,
        )

    def static_client(
        self,
        decision_service: DecisionService,
        event_processor: EventProcessor | None = None,
    ) -> ExperimentClient:
        """データファイルのスナップショットを返し続けるクライアントを生成する。

        Raises:
            ExperimentError: データファイルが無い、読めない、または不正な場合
        """
        manager = StaticProjectConfigManager.from_datafile(
            self._load_datafile(),
            client_name=self._settings.client.name,
            client_version=self._settings.client.version,
        )
        return self.client(manager, decision_service, event_processor)

    def _load_datafile(self) -> str | bytes:
        if self._datafile is not None:
            return self._datafile
        section = self._settings.datafile
        if section is None or not section.path:
            raise ExperimentError(
                code=ExperimentErrorCodes.CONFIG_UNAVAILABLE,
                message="no datafile provided",
            )
        path = Path(section.path)
        try:
            return path.read_bytes()
        except OSError as e:
            raise ExperimentError(
                code=ExperimentErrorCodes.READ_FILE,
                message=f"Failed to read datafile: {path}",
                cause=e,
            ) from e
