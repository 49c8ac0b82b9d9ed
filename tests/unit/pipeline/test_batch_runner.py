import pytest

from page_insight.pipeline.batch_runner import BatchRunner
from page_insight.telemetry import TelemetryContext, _SimpleReporter
from tests.helpers import (
    REWRITTEN,
    SUMMARY,
    VALID_BIAS,
    VALID_META,
    FakeAdapter,
    make_request,
    transport_error,
)

pytestmark = pytest.mark.unit


def runner_for(adapter, stage_executor, **kwargs):
    return BatchRunner({adapter.name: adapter}, stage_executor, **kwargs)


@pytest.mark.asyncio
async def test_all_stages_succeed(stage_executor):
    adapter = FakeAdapter()
    request = make_request(enableMeta=True, enableBias=True)

    result = await runner_for(adapter, stage_executor).run(request)

    assert result.summary == REWRITTEN
    assert result.meta == VALID_META
    assert result.bias == VALID_BIAS
    assert result.warnings == []
    assert adapter.stages == ["progressive", "rewrite", "meta", "bias"]


@pytest.mark.asyncio
async def test_unknown_provider_short_circuits(stage_executor):
    adapter = FakeAdapter()

    result = await runner_for(adapter, stage_executor).run(
        make_request(provider="claude")
    )

    assert result.summary == ""
    assert result.warnings == ["Invalid provider: Unknown provider: claude"]
    assert adapter.calls == []


@pytest.mark.asyncio
@pytest.mark.parametrize("api_key", ["", "   "])
async def test_blank_api_key_short_circuits(stage_executor, api_key):
    adapter = FakeAdapter()

    result = await runner_for(adapter, stage_executor).run(
        make_request(api_key=api_key, enableMeta=True)
    )

    assert result.summary == ""
    assert result.warnings == ["Missing API key"]
    assert adapter.calls == []


@pytest.mark.asyncio
async def test_progressive_failure_skips_rewrite_but_runs_analysis(stage_executor):
    adapter = FakeAdapter({"progressive": transport_error()})
    request = make_request(enableMeta=True, enableBias=True)

    result = await runner_for(adapter, stage_executor).run(request)

    assert result.summary == ""
    assert result.meta == VALID_META
    assert result.bias == VALID_BIAS
    assert result.warnings == [
        "Progressive summary failed: Gemini API error: 500 - boom"
    ]
    assert "rewrite" not in adapter.stages


@pytest.mark.asyncio
async def test_rewrite_failure_keeps_progressive_summary(stage_executor):
    adapter = FakeAdapter({"rewrite": transport_error("Gemini returned empty response")})

    result = await runner_for(adapter, stage_executor).run(make_request())

    assert result.summary == SUMMARY
    assert result.warnings == ["Rewrite mode failed: Gemini returned empty response"]


@pytest.mark.asyncio
async def test_rewrite_receives_the_fresh_summary(stage_executor):
    adapter = FakeAdapter()
    request = make_request(text="The raw page text that must not be restyled.")

    await runner_for(adapter, stage_executor).run(request)

    (rewrite_prompt,) = adapter.prompts_for("rewrite")
    assert f"Original summary:\n{SUMMARY}\n\n" in rewrite_prompt.instruction
    assert "raw page text" not in rewrite_prompt.instruction
    assert rewrite_prompt.system == request.plan.rewrite.system


@pytest.mark.asyncio
async def test_analysis_failures_leave_facets_absent(stage_executor):
    adapter = FakeAdapter(
        {"meta": transport_error("meta down"), "bias": transport_error("bias down")}
    )

    result = await runner_for(adapter, stage_executor).run(
        make_request(enableMeta=True, enableBias=True)
    )

    assert result.summary == REWRITTEN
    assert result.meta is None
    assert result.bias is None
    assert result.warnings == [
        "Meta analysis failed: meta down",
        "Bias analysis failed: bias down",
    ]
    assert "meta" not in result.to_dict()


@pytest.mark.asyncio
async def test_unparseable_analysis_is_kept_as_text(stage_executor):
    adapter = FakeAdapter({"meta": "The author wants to sell something."})

    result = await runner_for(adapter, stage_executor).run(
        make_request(enableMeta=True)
    )

    assert result.meta == "The author wants to sell something."


@pytest.mark.asyncio
async def test_json_null_analysis_keeps_the_facet(stage_executor):
    adapter = FakeAdapter({"meta": "null", "bias": "null"})

    result = await runner_for(adapter, stage_executor).run(
        make_request(enableMeta=True, enableBias=True)
    )

    assert result.meta == "null"
    assert result.bias == "null"
    assert result.warnings == []
    assert {"meta", "bias"} <= set(result.to_dict())


@pytest.mark.asyncio
async def test_fenced_json_analysis_is_decoded(stage_executor):
    adapter = FakeAdapter({"meta": '```json\n{"coreArgument": "x"}\n```'})

    result = await runner_for(adapter, stage_executor).run(
        make_request(enableMeta=True)
    )

    assert result.meta == {"coreArgument": "x"}


@pytest.mark.asyncio
async def test_unplanned_stages_are_not_called(stage_executor):
    adapter = FakeAdapter()

    result = await runner_for(adapter, stage_executor).run(make_request())

    assert adapter.stages == ["progressive", "rewrite"]
    assert result.meta is None
    assert result.bias is None


@pytest.mark.asyncio
async def test_retries_recover_within_a_stage(stage_executor, recording_sleep):
    adapter = FakeAdapter({"progressive": [transport_error(), "Recovered summary"]})
    reporter = _SimpleReporter()

    result = await runner_for(
        adapter, stage_executor, telemetry=TelemetryContext(reporter)
    ).run(make_request(retries=2))

    assert result.summary == REWRITTEN
    assert result.warnings == []
    assert recording_sleep.delays == [1.0]
    assert reporter.metric_total("stage.retry") == 1
