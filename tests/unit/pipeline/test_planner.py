"""Plan building: sanitization, stage selection and builder isolation."""

import dataclasses

import pytest

from page_insight.core.exceptions import PromptConstructionError
from page_insight.core.types import (
    BIAS_KEY,
    INTENT_KEY,
    META_KEY,
    PROGRESSIVE_KEY,
    REWRITE_KEY,
    PipelineRequest,
    Plan,
)
from page_insight.pipeline.planner import (
    PIPELINE_STAGES,
    PlanBuilder,
    build_plan,
    count_enabled_stages,
    describe_pipeline,
    full_request,
    get_optional_stages,
    get_pipeline_stages,
    get_required_stages,
    is_valid_request,
    minimal_request,
    sanitize_request,
)
from page_insight.telemetry import TelemetryContext, _SimpleReporter

pytestmark = pytest.mark.unit


class TestSanitizeRequest:
    def test_valid_request_passes_through_without_warnings(self):
        request, warnings = sanitize_request(
            {
                "text": "Hello",
                "intent": "research",
                "mode": "expert",
                "level": 3,
                "enableMeta": True,
                "enableBias": True,
            }
        )

        assert warnings == []
        assert request == PipelineRequest(
            text="Hello",
            intent="research",
            mode="expert",
            level=3,
            enable_meta=True,
            enable_bias=True,
        )

    def test_snake_case_flags_are_accepted(self):
        request, warnings = sanitize_request({"enable_meta": True})

        assert warnings == []
        assert request.enable_meta is True

    def test_missing_fields_default_silently(self):
        request, warnings = sanitize_request({})

        assert warnings == []
        assert request == PipelineRequest()

    def test_none_counts_as_absent(self):
        request, warnings = sanitize_request({"intent": None, "level": None})

        assert warnings == []
        assert request.intent == "casual"
        assert request.level == 2

    def test_each_invalid_field_defaults_with_one_warning(self):
        request, warnings = sanitize_request(
            {
                "text": 42,
                "intent": "gossip",
                "mode": "pirate",
                "level": 9,
                "enableMeta": "yes",
                "enableBias": 1,
            }
        )

        assert request == PipelineRequest()
        assert warnings == [
            "Invalid text: defaulted to empty string",
            "Invalid intent 'gossip': defaulted to 'casual'",
            "Invalid mode 'pirate': defaulted to 'professional'",
            "Invalid level '9': defaulted to 2",
            "Invalid enableMeta: defaulted to false",
            "Invalid enableBias: defaulted to false",
        ]

    def test_bool_is_not_a_level(self):
        request, warnings = sanitize_request({"level": True})

        assert request.level == 2
        assert len(warnings) == 1

    def test_non_mapping_request_becomes_empty_request(self):
        request, warnings = sanitize_request(["not", "a", "request"])

        assert request == PipelineRequest()
        assert warnings == ["Invalid request of type list: defaulted to empty request"]

    def test_pipeline_request_instance_is_kept(self):
        original = PipelineRequest(text="x", level=1)

        request, warnings = sanitize_request(original)

        assert request is original
        assert warnings == []


class TestBuildPlan:
    def test_default_plan_has_three_required_stages(self):
        plan, warnings = build_plan({"text": "Hello"})

        assert warnings == []
        assert set(plan) == {INTENT_KEY, PROGRESSIVE_KEY, REWRITE_KEY}
        assert plan.meta is None
        assert plan.bias is None

    def test_optional_stages_follow_flags(self):
        plan, _ = build_plan({"text": "Hello", "enableMeta": True, "enableBias": True})

        assert set(plan) == {INTENT_KEY, PROGRESSIVE_KEY, REWRITE_KEY, META_KEY, BIAS_KEY}

    def test_prompts_embed_the_text(self):
        plan, _ = build_plan({"text": "Unique page body", "enableMeta": True})

        assert "Unique page body" in plan.progressive.instruction
        assert "Unique page body" in plan.rewrite.instruction
        assert "Unique page body" in plan.meta.instruction

    def test_never_raises_on_garbage(self):
        plan, warnings = build_plan(12345)

        assert isinstance(plan, Plan)
        assert PROGRESSIVE_KEY in plan
        assert warnings

    def test_failing_builder_is_isolated(self):
        def explode(_request):
            raise PromptConstructionError("template missing")

        stages = tuple(
            dataclasses.replace(d, build=explode) if d.stage == "mode" else d
            for d in PIPELINE_STAGES
        )
        reporter = _SimpleReporter()
        builder = PlanBuilder(stages, telemetry=TelemetryContext(reporter))

        plan, warnings = builder.build({"text": "Hello", "enableBias": True})

        assert REWRITE_KEY not in plan
        assert {PROGRESSIVE_KEY, BIAS_KEY} <= set(plan)
        assert warnings == ["Reading Mode Rewrite engine failed: template missing"]
        assert reporter.metric_total("planner.stage_failure") == 1

    def test_plan_is_read_only(self):
        plan, _ = build_plan({"text": "Hello"})

        with pytest.raises(TypeError):
            plan.prompts["extra"] = plan.progressive  # type: ignore[index]


class TestPipelineIntrospection:
    def test_stage_names_in_order(self):
        assert get_pipeline_stages() == [
            "Intent Shaping",
            "Progressive Compression",
            "Reading Mode Rewrite",
            "Meta Analysis",
            "Bias Scanning",
        ]

    def test_required_and_optional_split(self):
        assert get_required_stages() == get_pipeline_stages()[:3]
        assert get_optional_stages() == ["Meta Analysis", "Bias Scanning"]

    def test_describe_pipeline_shape(self):
        described = describe_pipeline()

        assert len(described) == 5
        assert described[3] == {
            "name": "Meta Analysis",
            "description": "Analyze author intent, core argument, and persuasion signals",
            "required": False,
            "stage": "meta",
        }

    def test_count_enabled_stages(self):
        assert count_enabled_stages({}) == 3
        assert count_enabled_stages(full_request("x")) == 5

    def test_is_valid_request_is_strict(self):
        complete = {
            "text": "x",
            "intent": "news",
            "mode": "simple",
            "level": 1,
            "enableMeta": False,
            "enableBias": False,
        }
        assert is_valid_request(complete)
        assert not is_valid_request({**complete, "level": 4})
        assert not is_valid_request({"text": "x"})
        assert not is_valid_request("x")

    def test_request_factories(self):
        assert minimal_request("t") == PipelineRequest(text="t")
        full = full_request("t")
        assert full.enable_meta and full.enable_bias
