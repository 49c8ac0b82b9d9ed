import logging

import pytest

from page_insight.telemetry import TelemetryContext, _SimpleReporter

pytestmark = pytest.mark.unit


def test_disabled_by_default_returns_shared_noop():
    first = TelemetryContext()
    second = TelemetryContext()

    assert first is second
    assert not first.is_enabled
    with first("anything") as tele:
        tele.count("ignored")
        tele.gauge("ignored", 1.0)


def test_reporters_enable_telemetry():
    reporter = _SimpleReporter()
    tele = TelemetryContext(reporter)

    assert tele.is_enabled
    with tele("pipeline.stage", stage="meta"):
        tele.count("stage.retry")
        tele.count("stage.retry", 2)

    assert "pipeline.stage" in reporter.timings
    assert reporter.metrics["pipeline.stage.stage.retry"][0][0] == 1
    assert reporter.metric_total("stage.retry") == 3


def test_nested_scopes_build_dotted_paths():
    reporter = _SimpleReporter()
    tele = TelemetryContext(reporter)

    with tele("outer"), tele("inner"):
        pass

    assert set(reporter.timings) == {"outer", "outer.inner"}
    _, metadata = reporter.timings["outer.inner"][0]
    assert metadata["parent_scope"] == "outer"


@pytest.mark.parametrize("variable", ["PAGE_INSIGHT_TELEMETRY", "DEBUG"])
def test_environment_flag_enables_logging_reporter(monkeypatch, caplog, variable):
    monkeypatch.setenv(variable, "1")
    tele = TelemetryContext()

    with caplog.at_level(logging.DEBUG, logger="page_insight.telemetry"):
        with tele("planner.build"):
            tele.count("planner.stage_failure")

    assert tele.is_enabled
    assert "planner.build" in caplog.text


def test_failing_reporter_does_not_break_caller(caplog):
    class Broken:
        def record_timing(self, scope, duration, **metadata):
            raise RuntimeError("reporter down")

        def record_metric(self, scope, value, **metadata):
            raise RuntimeError("reporter down")

    tele = TelemetryContext(Broken())

    with tele("scope"):
        tele.count("metric")

    assert "reporter down" in caplog.text


def test_empty_scope_name_rejected():
    tele = TelemetryContext(_SimpleReporter())

    with pytest.raises(ValueError), tele(""):
        pass


def test_report_renders_collected_data():
    reporter = _SimpleReporter()
    tele = TelemetryContext(reporter)
    with tele("pipeline.batch"):
        tele.gauge("planner.stages_planned", 3)

    report = reporter.get_report()

    assert "pipeline.batch" in report
    assert "planner.stages_planned" in report
