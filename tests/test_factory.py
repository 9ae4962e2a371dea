"""クライアントファクトリーのユニットテスト"""

from pathlib import Path

import pytest
from k1s0_experiment import (
    ClientSettings,
    ExperimentClientFactory,
    ExperimentError,
    ExperimentErrorCodes,
    InMemoryDecisionService,
    InMemoryEventProcessor,
    UserContext,
)
from k1s0_experiment.settings import ClientSection, DatafileSection

from helpers import DATAFILE


async def test_static_client_from_datafile() -> None:
    processor = InMemoryEventProcessor()
    decisions = InMemoryDecisionService()
    decisions.set_experiment_variation("background_experiment", "variation_a")
    factory = ExperimentClientFactory(datafile=DATAFILE)
    client = factory.static_client(decisions, processor)

    result = await client.activate("background_experiment", UserContext(id="u1"))
    assert result.ok
    assert result.value == "variation_a"
    assert len(processor.events) == 1
    assert processor.events[0].event_context.client_name == "k1s0-experiment"
    await client.close()


async def test_static_client_from_settings_path(tmp_path: Path) -> None:
    datafile = tmp_path / "datafile.json"
    datafile.write_text(DATAFILE)
    settings = ClientSettings(
        client=ClientSection(name="storefront", version="2.0.0"),
        datafile=DatafileSection(path=str(datafile)),
    )
    processor = InMemoryEventProcessor()
    client = ExperimentClientFactory(settings=settings).static_client(
        InMemoryDecisionService(), processor
    )

    result = await client.track("sample_conversion", UserContext(id="u1"), {"revenue": 100})
    assert result.ok
    context = processor.events[0].event_context
    assert context.client_name == "storefront"
    assert context.client_version == "2.0.0"
    await client.close()


def test_static_client_without_datafile() -> None:
    with pytest.raises(ExperimentError) as exc_info:
        ExperimentClientFactory().static_client(InMemoryDecisionService())
    assert exc_info.value.code == ExperimentErrorCodes.CONFIG_UNAVAILABLE


def test_static_client_missing_datafile(tmp_path: Path) -> None:
    settings = ClientSettings(datafile=DatafileSection(path=str(tmp_path / "missing.json")))
    with pytest.raises(ExperimentError) as exc_info:
        ExperimentClientFactory(settings=settings).static_client(InMemoryDecisionService())
    assert exc_info.value.code == ExperimentErrorCodes.READ_FILE


async def test_each_client_has_own_execution_context() -> None:
    factory = ExperimentClientFactory(datafile=DATAFILE)
    first = factory.static_client(InMemoryDecisionService())
    second = factory.static_client(InMemoryDecisionService())
    assert first.execution_ctx is not second.execution_ctx

    await first.close()
    assert first.execution_ctx.cancelled
    assert not second.execution_ctx.cancelled
    await second.close()
