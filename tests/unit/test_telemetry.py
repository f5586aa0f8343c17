"""Unit tests for telemetry contexts and gateway instrumentation."""

from unittest.mock import patch

import pytest

from dify_app.client import CacheConfig, RateLimitConfig, RateLimiter, RequestDescriptor, ResponseCache
from dify_app.client.gateway import RequestGateway
from dify_app.exceptions import RateLimitExceeded
from dify_app.telemetry import (
    SimpleReporter,
    TelemetryContext,
    TelemetryReporter,
    _EnabledTelemetryContext,
    _NoOpTelemetryContext,
)

pytestmark = pytest.mark.unit


class _ExplodingReporter:
    def record_timing(self, scope, duration, **metadata):
        raise RuntimeError("reporter down")

    def record_metric(self, scope, value, **metadata):
        raise RuntimeError("reporter down")


class TestTelemetryContextFactory:
    def test_disabled_without_flag(self):
        with patch("dify_app.telemetry._TELEMETRY_ENABLED", False):
            assert isinstance(TelemetryContext(SimpleReporter()), _NoOpTelemetryContext)

    def test_enabled_with_flag_and_reporters(self):
        with patch("dify_app.telemetry._TELEMETRY_ENABLED", True):
            assert isinstance(TelemetryContext(SimpleReporter()), _EnabledTelemetryContext)
            assert isinstance(TelemetryContext(), _NoOpTelemetryContext)

    def test_simple_reporter_satisfies_protocol(self):
        assert isinstance(SimpleReporter(), TelemetryReporter)

    def test_noop_context_accepts_everything(self):
        tele = TelemetryContext()
        with tele("scope", key="value") as ctx:
            ctx.metric("m", 1)
            ctx.count("c")


class TestEnabledContext:
    def test_nested_scopes_record_dotted_paths(self):
        reporter = SimpleReporter()
        tele = _EnabledTelemetryContext(reporter)

        with tele("outer"):
            with tele("inner"):
                tele.count("hits", 2)

        assert set(reporter.timings) == {"outer", "outer.inner"}
        value, metadata = reporter.metrics["outer.inner.hits"][0]
        assert value == 2
        assert metadata["metric_type"] == "counter"
        assert metadata["parent_scope"] == "outer.inner"

    def test_empty_scope_name_is_rejected(self):
        tele = _EnabledTelemetryContext(SimpleReporter())
        with pytest.raises(ValueError), tele(""):
            pass

    def test_failing_reporter_does_not_break_caller(self, caplog):
        tele = _EnabledTelemetryContext(_ExplodingReporter())

        with tele("work"):
            tele.metric("m", 1)

        assert "reporter down" in caplog.text

    def test_report_rendering(self):
        reporter = SimpleReporter()
        tele = _EnabledTelemetryContext(reporter)
        with tele("gateway.execute"):
            tele.count("cache.hit")

        report = reporter.get_report()
        assert "=== Telemetry Report ===" in report
        assert "gateway.execute" in report
        assert "gateway.execute.cache.hit" in report


class TestGatewayInstrumentation:
    @pytest.fixture
    def reporter(self) -> SimpleReporter:
        return SimpleReporter()

    @pytest.fixture
    def instrumented(self, api_key, transport, clock, reporter) -> RequestGateway:
        return RequestGateway(
            api_key,
            "https://api.example.test/v1",
            transport=transport,
            rate_limiter=RateLimiter(RateLimitConfig(max_requests=2, window_ms=1000), clock=clock),
            cache=ResponseCache(CacheConfig(), clock=clock),
            telemetry=_EnabledTelemetryContext(reporter),
        )

    def test_cache_hits_and_misses_are_counted(self, instrumented, reporter):
        instrumented.execute(RequestDescriptor("GET", "/info"))
        instrumented.execute(RequestDescriptor("GET", "/info"))

        assert len(reporter.timings["gateway.execute"]) == 2
        assert len(reporter.metrics["gateway.execute.cache.miss"]) == 1
        assert len(reporter.metrics["gateway.execute.cache.hit"]) == 1

    def test_rate_limit_rejections_are_counted(self, instrumented, reporter):
        instrumented.stream(RequestDescriptor("POST", "/chat-messages", json_body={}))
        instrumented.stream(RequestDescriptor("POST", "/chat-messages", json_body={}))

        with pytest.raises(RateLimitExceeded):
            instrumented.stream(RequestDescriptor("POST", "/chat-messages", json_body={}))

        assert len(reporter.metrics["gateway.stream.rate_limit.rejected"]) == 1
