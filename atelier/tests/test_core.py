"""
Tests for configuration and observability setup.
"""

import pytest
from prometheus_client import REGISTRY
from pydantic import ValidationError

from atelier.core import observability
from atelier.core.config import Settings


class TestSettings:
    """Test environment-driven configuration."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("ATELIER_DEPARTMENT_STAGE_MAP", raising=False)

        config = Settings(_env_file=None)

        assert config.NEUTRAL_EFFICIENCY_BASELINE == 100.0
        assert config.DEPARTMENT_STAGE_MAP["tailoring"] == "sewing"
        assert config.AUTO_OPEN_STAGE_TASKS
        assert config.is_local

    def test_department_map_from_environment(self, monkeypatch):
        monkeypatch.setenv("ATELIER_DEPARTMENT_STAGE_MAP", '{"embroidery": "sewing"}')

        config = Settings(_env_file=None)

        assert config.DEPARTMENT_STAGE_MAP == {"embroidery": "sewing"}

    def test_department_map_must_target_work_stages(self, monkeypatch):
        monkeypatch.setenv("ATELIER_DEPARTMENT_STAGE_MAP", '{"dispatch": "completed"}')

        with pytest.raises(ValidationError):
            Settings(_env_file=None)

    def test_department_map_rejects_case_duplicates(self, monkeypatch):
        monkeypatch.setenv(
            "ATELIER_DEPARTMENT_STAGE_MAP", '{"Sewing": "sewing", "sewing": "fitting"}'
        )

        with pytest.raises(ValidationError):
            Settings(_env_file=None)

    def test_baseline_range(self, monkeypatch):
        monkeypatch.setenv("ATELIER_NEUTRAL_EFFICIENCY_BASELINE", "120")

        with pytest.raises(ValidationError):
            Settings(_env_file=None)


class TestObservability:
    """Test logging setup and counters."""

    def test_correlation_id(self):
        correlation_id = observability.set_correlation_id("req-42")

        assert correlation_id == "req-42"
        assert observability.get_correlation_id() == "req-42"
        assert observability.set_correlation_id()

    def test_correlation_processor_adds_id(self):
        observability.set_correlation_id("req-7")

        event = observability.CorrelationIdProcessor()(None, "info", {"event": "x"})

        assert event["correlation_id"] == "req-7"

    def test_setup_structured_logging(self):
        observability.setup_structured_logging()

        observability.get_logger("atelier.tests").info("configured", check=True)

    def test_stage_transition_counter(self):
        labels = {"from_stage": "design", "to_stage": "cutting"}
        before = REGISTRY.get_sample_value("atelier_stage_transitions_total", labels) or 0.0

        observability.record_stage_transition("design", "cutting")

        after = REGISTRY.get_sample_value("atelier_stage_transitions_total", labels)
        assert after == before + 1

    def test_metrics_can_be_disabled(self, monkeypatch):
        monkeypatch.setattr(observability.settings, "ENABLE_METRICS", False)
        labels = {"operation": "claim_next_task", "outcome": "disabled-check"}

        observability.record_assignment_outcome("claim_next_task", "disabled-check")

        assert REGISTRY.get_sample_value("atelier_assignment_operations_total", labels) is None
