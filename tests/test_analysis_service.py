"""
Tests for the analysis service with a mocked LLM client.
"""
import pytest
from conftest import llm_reply, make_diff

from codesuggest.exceptions import LlmError
from codesuggest.models import AnalysisOptions, AnalysisRequest, Severity
from codesuggest.services.analysis_service import AnalysisService


def request_for(*file_diffs, **kwargs) -> AnalysisRequest:
    return AnalysisRequest(
        change_request_id=kwargs.pop("change_request_id", 1),
        repository_id=kwargs.pop("repository_id", 100),
        file_diffs=list(file_diffs),
        **kwargs,
    )


@pytest.fixture
def service(settings, llm_client) -> AnalysisService:
    return AnalysisService(settings, llm_client)


@pytest.mark.asyncio
async def test_successful_analysis(service, llm_client):
    llm_client.chat.return_value = llm_reply([{
        "filePath": "src/Main.java",
        "startLine": 10,
        "endLine": 15,
        "severity": "CRITICAL",
        "category": "SECURITY",
        "confidence": 0.95,
    }])

    response = await service.analyze(request_for(make_diff("src/Main.java")))

    assert response.success
    assert len(response.suggestions) == 1
    s = response.suggestions[0]
    assert s.severity == Severity.CRITICAL
    assert (s.change_request_id, s.repository_id) == (1, 100)
    assert response.summary.total_files == 1
    assert response.elapsed_ms >= 0


@pytest.mark.asyncio
async def test_empty_file_list_succeeds(service, llm_client):
    response = await service.analyze(request_for())

    assert response.success
    assert response.suggestions == []
    llm_client.chat.assert_not_called()


@pytest.mark.asyncio
async def test_excluded_files_are_not_sent(service, llm_client):
    response = await service.analyze(request_for(make_diff("dist/app.min.js"), make_diff("dist/app.js.map")))

    assert response.success
    assert response.suggestions == []
    llm_client.chat.assert_not_called()


@pytest.mark.asyncio
async def test_confidence_threshold_from_settings(service, llm_client):
    llm_client.chat.return_value = llm_reply([{"severity": "HINT", "confidence": 0.4}])

    response = await service.analyze(request_for(make_diff("a.py")))

    assert response.success
    assert response.suggestions == []


@pytest.mark.asyncio
async def test_request_confidence_override(service, llm_client):
    llm_client.chat.return_value = llm_reply([
        {"severity": "INFO", "confidence": 0.79},
        {"severity": "INFO", "confidence": 0.8},
    ])

    response = await service.analyze(
        request_for(make_diff("a.py"), options=AnalysisOptions(min_confidence=0.8))
    )

    assert [s.confidence for s in response.suggestions] == [0.8]


@pytest.mark.asyncio
async def test_disabled_category_is_filtered(service, llm_client):
    llm_client.chat.return_value = llm_reply([
        {"category": "CODE_STYLE", "confidence": 0.9},
        {"category": "SECURITY", "confidence": 0.9},
    ])

    response = await service.analyze(
        request_for(make_diff("a.py"), options=AnalysisOptions(check_style=False))
    )

    assert [s.category.value for s in response.suggestions] == ["SECURITY"]


@pytest.mark.asyncio
async def test_llm_error_is_contained_per_file(service, llm_client):
    llm_client.chat.side_effect = [
        LlmError("server did not respond"),
        llm_reply([{"severity": "WARNING", "confidence": 0.9}]),
    ]

    response = await service.analyze(request_for(make_diff("a.py"), make_diff("b.py")))

    assert response.success
    assert len(response.suggestions) == 1
    assert response.suggestions[0].file_path == "b.py"
    assert llm_client.chat.call_count == 2


@pytest.mark.asyncio
async def test_unparseable_reply_contributes_nothing(service, llm_client):
    llm_client.chat.return_value = "I could not find any problems."

    response = await service.analyze(request_for(make_diff("a.py")))

    assert response.success
    assert response.suggestions == []


@pytest.mark.asyncio
async def test_results_are_ranked_and_scored(service, llm_client):
    llm_client.chat.return_value = llm_reply([
        {"severity": "INFO", "category": "CODE_STYLE", "confidence": 0.7},
        {"severity": "WARNING", "category": "PERFORMANCE", "confidence": 0.8},
        {"severity": "CRITICAL", "category": "SECURITY", "confidence": 0.9},
    ])

    response = await service.analyze(request_for(make_diff("a.java")))

    assert [s.severity for s in response.suggestions] == [
        Severity.CRITICAL, Severity.WARNING, Severity.INFO,
    ]
    summary = response.summary
    assert (summary.critical_count, summary.warning_count, summary.info_count) == (1, 1, 1)
    assert summary.overall_score == 74.0


@pytest.mark.asyncio
async def test_malformed_request_fails_whole_batch(service, llm_client):
    response = await service.analyze(request_for(make_diff("a.py"), change_request_id=0))

    assert not response.success
    assert response.error
    assert response.suggestions == []
    llm_client.chat.assert_not_called()


@pytest.mark.asyncio
async def test_analyze_file_uses_given_language(service, llm_client):
    llm_client.chat.return_value = "[]"

    await service.analyze_file(make_diff("script"), "python")

    messages = llm_client.chat.call_args.args[0]
    assert "- **Language**: python" in messages[1]["content"]


@pytest.mark.asyncio
async def test_analyze_file_propagates_llm_errors(service, llm_client):
    llm_client.chat.side_effect = LlmError("boom")

    with pytest.raises(LlmError):
        await service.analyze_file(make_diff("a.py"), "python")
