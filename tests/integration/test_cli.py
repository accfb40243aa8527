"""End-to-end tests for the context-allocator CLI.

Every command must emit a response-v2 envelope: success payloads on
stdout, error envelopes on stderr with exit code 1.
"""

import json

import pytest
from click.testing import CliRunner

from context_allocator.cli.main import cli
from context_allocator.core.providers import GENERIC_INSTRUCTIONS as GENERIC
from context_allocator.core.selection import TRUNCATION_MARKER

pytestmark = pytest.mark.integration


@pytest.fixture
def runner(tmp_path, monkeypatch):
    """CliRunner running in an empty working directory."""
    monkeypatch.chdir(tmp_path)
    return CliRunner()


@pytest.fixture
def invoke(runner, content_root):
    """Invoke the CLI against the shared content root."""

    def _invoke(*args):
        return runner.invoke(cli, ["--content-root", str(content_root), *args])

    return _invoke


def envelope(result) -> dict:
    """Extract the response envelope from CLI output (log lines are skipped)."""
    for line in result.output.splitlines():
        if line.startswith('{"success"'):
            return json.loads(line)
    raise AssertionError(f"No response envelope in output:\n{result.output}")


def assert_error(result, code: str) -> dict:
    assert result.exit_code == 1, result.output
    response = envelope(result)
    assert response["success"] is False
    assert response["data"]["error_code"] == code
    assert response["meta"]["version"] == "response-v2"
    return response


# =============================================================================
# Envelope
# =============================================================================


class TestEnvelope:
    def test_success_envelope(self, invoke):
        result = invoke("allocation")
        assert result.exit_code == 0, result.output
        response = envelope(result)
        assert set(response) == {"success", "data", "error", "meta"}
        assert response["success"] is True
        assert response["error"] is None
        assert response["meta"]["version"] == "response-v2"
        assert response["meta"]["request_id"].startswith("cli_")

    def test_version(self, invoke):
        result = invoke("version")
        assert result.exit_code == 0, result.output
        assert envelope(result)["data"]["name"] == "context-allocator"


# =============================================================================
# Budget commands
# =============================================================================


class TestAllocationCommand:
    def test_default(self, invoke):
        data = envelope(invoke("allocation"))["data"]
        assert data["allocation"]["instructions"] == 2400
        assert data["allocation"]["reserved"] == 600
        assert data["breakdown"]["docs"] == "30% (1800 tokens)"
        assert data["char_limits"]["agent"] == 4800

    def test_preset(self, invoke):
        data = envelope(invoke("allocation", "--preset", "generous"))["data"]
        assert data["allocation"]["total"] == 8000

    def test_total_override(self, invoke):
        data = envelope(invoke("allocation", "--total", "1000"))["data"]
        assert data["allocation"]["instructions"] == 400

    def test_negative_total(self, invoke):
        response = assert_error(invoke("allocation", "--total", "-5"), "VALIDATION_ERROR")
        assert "non-negative" in response["error"]

    def test_unknown_preset_is_usage_error(self, invoke):
        assert invoke("allocation", "--preset", "huge").exit_code == 2

    def test_normalization_warning(self, runner, content_root, tmp_path):
        config = tmp_path / "allocator.toml"
        config.write_text(
            "[budget]\ninstructions = 50\ndocs = 50\nagent = 50\nreserved = 50\n",
            encoding="utf-8",
        )
        result = runner.invoke(cli, ["--config", str(config), "allocation"])
        assert result.exit_code == 0, result.output
        response = envelope(result)
        assert response["data"]["allocation"]["normalized"] is True
        assert response["meta"]["warnings"] == ["Weights total 200%, normalized to 100%"]

    def test_malformed_config_file(self, runner, tmp_path):
        config = tmp_path / "bad.toml"
        config.write_text("[budget\n", encoding="utf-8")
        assert_error(runner.invoke(cli, ["--config", str(config), "allocation"]), "VALIDATION_ERROR")


class TestRankCommand:
    def test_security_task(self, invoke):
        data = envelope(invoke("rank", "implement security authentication"))["data"]
        assert data["applied_rule"] == "security"
        assert [p["type"] for p in data["priorities"]] == ["instructions", "docs", "agent"]
        assert data["allocation"]["instructions"] == 2700
        assert data["allocation"]["reserved"] == 600

    def test_override_is_reported(self, invoke):
        data = envelope(invoke("rank", "optimize the api endpoint"))["data"]
        assert data["matched_rules"] == ["api", "performance"]
        assert data["priorities"][0] == {"type": "docs", "priority": 1}


class TestTruncateCommand:
    @pytest.fixture
    def text_file(self, tmp_path):
        path = tmp_path / "notes.md"
        path.write_text("Sentence one. Sentence two. Sentence three.", encoding="utf-8")
        return path

    def test_budget_chars(self, invoke, text_file):
        data = envelope(invoke("truncate", str(text_file), "--budget-chars", "32"))["data"]
        assert data["content"] == "Sentence one. Sentence two." + TRUNCATION_MARKER
        assert data["was_truncated"] is True
        assert data["percent_retained"] == 63

    def test_budget_tokens(self, invoke, text_file):
        data = envelope(invoke("truncate", str(text_file), "--budget-tokens", "8"))["data"]
        assert data["budget_chars"] == 32

    def test_no_show_content(self, invoke, text_file):
        data = envelope(
            invoke("truncate", str(text_file), "--budget-chars", "32", "--no-show-content")
        )["data"]
        assert "content" not in data

    def test_budget_required(self, invoke, text_file):
        assert_error(invoke("truncate", str(text_file)), "VALIDATION_ERROR")

    def test_both_budgets_rejected(self, invoke, text_file):
        result = invoke("truncate", str(text_file), "--budget-chars", "5", "--budget-tokens", "5")
        assert_error(result, "VALIDATION_ERROR")

    def test_bad_configured_preset(self, invoke, text_file, monkeypatch):
        monkeypatch.setenv("CONTEXT_ALLOCATOR_PRESET", "bogus")
        result = invoke("truncate", str(text_file), "--budget-chars", "5")
        response = assert_error(result, "VALIDATION_ERROR")
        assert "Unknown preset" in response["error"]

    def test_invalid_utf8_file(self, invoke, tmp_path):
        path = tmp_path / "binary.md"
        path.write_bytes(b"\xff\xfeSentence one.")
        data = envelope(invoke("truncate", str(path), "--budget-chars", "100"))["data"]
        assert data["content"] == "Sentence one."

    def test_missing_file(self, invoke, tmp_path):
        result = invoke("truncate", str(tmp_path / "absent.md"), "--budget-chars", "5")
        assert_error(result, "NOT_FOUND")


# =============================================================================
# Content commands
# =============================================================================


class TestContextCommand:
    def test_selects_content(self, invoke):
        data = envelope(invoke("context", "optimize performance", "--file-type", "java"))["data"]
        assert data["appliedRule"] == "performance"
        assert data["summary"]["filesLoaded"] == 4
        assert data["items"][0]["category"] == "docs"
        assert data["items"][0]["sourceId"] == "performance-guide.md"

    def test_zero_budget(self, invoke):
        response = envelope(invoke("context", "optimize performance", "--budget", "0"))
        assert response["data"]["summary"]["filesLoaded"] == 0
        assert response["meta"]["warnings"]

    def test_small_budget_truncates(self, invoke):
        data = envelope(invoke("context", "implement security", "--budget", "10"))["data"]
        assert data["summary"]["totalCharsUsed"] <= 32
        assert any(item["truncated"] for item in data["items"])

    def test_negative_budget(self, invoke):
        assert_error(invoke("context", "anything", "--budget", "-1"), "VALIDATION_ERROR")

    def test_invalid_utf8_instructions(self, invoke, content_root):
        (content_root / "instructions" / GENERIC).write_bytes(b"\xff\xfe# Review\n")
        result = invoke("context", "review")
        assert result.exit_code == 0, result.output
        assert envelope(result)["data"]["items"][0]["sourceId"] == GENERIC


class TestInstructionsForCommand:
    def test_java(self, invoke):
        data = envelope(invoke("instructions-for", "src/UserService.java"))["data"]
        assert data["instructions"] == "java.instructions.md"
        assert data["content"].startswith("# Java")

    def test_max_chars(self, invoke):
        data = envelope(invoke("instructions-for", "A.java", "--max-chars", "10"))["data"]
        assert data["truncation"]["was_truncated"] is True
        assert data["content"].endswith(TRUNCATION_MARKER)

    def test_missing_instructions(self, invoke):
        response = assert_error(invoke("instructions-for", "App.vue"), "NOT_FOUND")
        assert response["data"]["error_type"] == "not_found"

    def test_negative_max_chars(self, invoke):
        assert_error(invoke("instructions-for", "A.java", "--max-chars", "-1"), "VALIDATION_ERROR")


class TestDocsCommand:
    def test_docs(self, invoke):
        data = envelope(invoke("docs", "performance"))["data"]
        assert [d["file"] for d in data["docs"]] == ["performance-guide.md"]

    def test_unknown_topic(self, invoke):
        response = assert_error(invoke("docs", "kubernetes"), "NOT_FOUND")
        assert response["data"]["details"]["available"] == ["performance-guide.md", "style-guide.md"]

    def test_limit_must_be_positive(self, invoke):
        assert invoke("docs", "guide", "--limit", "0").exit_code == 2


class TestAgentCommand:
    def test_agent(self, invoke):
        data = envelope(invoke("agent", "architecture-agent"))["data"]
        assert data["summary"].startswith("# Architecture Agent")

    def test_unknown_agent(self, invoke):
        response = assert_error(invoke("agent", "moqui-agent"), "NOT_FOUND")
        assert response["data"]["details"]["available"] == ["api-agent", "architecture-agent"]


class TestSearchCommand:
    def test_search(self, invoke):
        data = envelope(invoke("search", "OWASP"))["data"]
        assert data["matches_found"] == 1
        assert data["results"][0]["file"] == "security-and-owasp.instructions.md"

    def test_limit(self, invoke):
        data = envelope(invoke("search", "e", "--limit", "1"))["data"]
        assert len(data["results"]) == 1


class TestListCommand:
    def test_default_category(self, invoke):
        data = envelope(invoke("list"))["data"]
        assert data["category"] == "instructions"
        assert data["count"] == 4

    def test_agents(self, invoke):
        data = envelope(invoke("list", "--category", "agent"))["data"]
        assert [f["file"] for f in data["files"]] == ["api-agent.md", "architecture-agent.md"]

    def test_missing_root(self, runner, tmp_path):
        result = runner.invoke(cli, ["--content-root", str(tmp_path / "nope"), "list"])
        assert_error(result, "NOT_FOUND")
