"""Tests for structured logging and request correlation."""

import io
import json
import logging

from context_allocator.core.allocation import BudgetAllocator, BudgetConfiguration
from context_allocator.core.context import (
    generate_correlation_id,
    get_correlation_id,
    sync_request_context,
)
from context_allocator.core.logging_config import configure_logging


class TestCorrelationContext:
    def test_generated_id_format(self):
        correlation_id = generate_correlation_id("cli")
        assert correlation_id.startswith("cli_")
        assert len(correlation_id) == len("cli_") + 12

    def test_context_is_restored(self):
        assert get_correlation_id() == ""
        with sync_request_context("req_outer") as ctx:
            assert ctx.correlation_id == "req_outer"
            assert get_correlation_id() == "req_outer"
        assert get_correlation_id() == ""


class TestConfigureLogging:
    def test_structured_output_carries_correlation_id(self):
        stream = io.StringIO()
        configure_logging(level=logging.WARNING, format="structured", stream=stream)

        config = BudgetConfiguration.from_percentages(
            instructions=50, docs=50, agent=50, reserved=50
        )
        with sync_request_context("req_test123"):
            BudgetAllocator(config)

        entry = json.loads(stream.getvalue().strip().splitlines()[-1])
        assert entry["level"] == "WARNING"
        assert entry["logger"] == "context_allocator.core.allocation"
        assert entry["correlation_id"] == "req_test123"
        assert "normalizing to 100%" in entry["message"]
        assert entry["extra"]["raw_weight_sum"] == 200.0

    def test_human_output(self):
        stream = io.StringIO()
        configure_logging(level=logging.DEBUG, format="human", stream=stream)

        with sync_request_context("req_human"):
            logging.getLogger("context_allocator.core.selection").debug("cut here")

        line = stream.getvalue().strip()
        assert "[DEBUG] [req_human] core.selection: cut here" in line

    def test_reconfigure_replaces_handlers(self):
        configure_logging(stream=io.StringIO())
        logger = configure_logging(stream=io.StringIO())
        assert len(logger.handlers) == 1
