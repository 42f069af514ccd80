"""Tests for the HTTP API."""

import json

import pytest
from fastapi.testclient import TestClient

from memo_triage.dependencies import get_classification_service, get_summary_aggregator
from memo_triage.main import app
from memo_triage.services.classification_service import ClassificationService
from memo_triage.services.summarization_service import SummarizationService
from memo_triage.services.summary_aggregator import SummaryAggregator
from memo_triage.utils.errors import LLMError


@pytest.fixture
def llm(fake_llm_factory):
    def handler(messages):
        prompt = messages[-1]["content"]
        if "Classify these documents:" in prompt:
            docs = json.loads(prompt.split("Classify these documents:\n", 1)[1])
            return json.dumps(
                {
                    "classifications": [
                        {
                            "filename": d["filename"],
                            "classification": "chapter",
                            "reasoning": "Financial model",
                            "confidence": 0.8,
                            "relevant_chapters": ["Finance & Operations"],
                        }
                        for d in docs
                    ]
                }
            )
        if "PART SUMMARIES:" in prompt:
            return "merged summary"
        if "poison" in prompt:
            return LLMError("model overloaded")
        return "chunk summary"

    return fake_llm_factory(handler=handler)


@pytest.fixture
def client(llm, fast_retry, recording_sleep):
    service = SummarizationService(llm_client=llm, retry_policy=fast_retry)
    app.dependency_overrides[get_summary_aggregator] = lambda: SummaryAggregator(
        service, chunk_delay=0, sleep=recording_sleep
    )
    app.dependency_overrides[get_classification_service] = lambda: ClassificationService(
        llm_client=llm, retry_policy=fast_retry
    )
    yield TestClient(app)
    app.dependency_overrides.clear()


def summary_body(**overrides):
    body = {
        "document": {"filename": "deck.pdf", "parsedContent": {"pages": ["ARR $2M"]}},
        "extractionScope": "Financials",
        "scopeDescription": "Revenue, burn and runway",
    }
    body.update(overrides)
    return {k: v for k, v in body.items() if v is not None}


class TestHealth:
    def test_health(self, client):
        for path in ("/health", "/api/v1/health"):
            response = client.get(path)
            assert response.status_code == 200
            assert response.json()["status"] == "healthy"

    def test_ready(self, client):
        response = client.get("/ready")
        assert response.status_code == 200
        assert response.json()["checks"] == {"llm": True, "parser": True}

    def test_not_ready_without_llm_key(self, client, mock_settings):
        mock_settings.llm.groq_api_key = None
        response = client.get("/api/v1/ready")
        assert response.status_code == 503
        assert response.json()["status"] == "not_ready"

    def test_api_info(self, client):
        response = client.get("/api/v1/")
        assert response.json()["endpoints"]["smart_summary"] == "/api/v1/smart-summary"


class TestSmartSummary:
    def test_whole_document(self, client, llm):
        response = client.post("/api/v1/smart-summary", json=summary_body())

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["filename"] == "deck.pdf"
        assert body["summary"] == "chunk summary"
        assert body["chunkCount"] == 1
        assert body["error"] is None
        assert len(llm.calls) == 1

    def test_large_document_chunked_and_merged(self, client, llm, mock_settings):
        mock_settings.chunking.max_tokens_per_chunk = 100
        text = " ".join(f"word{i:04d}" for i in range(400))
        body = summary_body(document={"filename": "big.txt", "parsedContent": text})

        response = client.post("/api/v1/smart-summary", json=body)

        data = response.json()
        assert data["success"] is True
        assert data["summary"] == "merged summary"
        assert data["chunkCount"] > 1
        assert len(llm.calls) == data["chunkCount"] + 1

    def test_document_chunks(self, client, llm):
        body = summary_body(
            document=None,
            documentChunks=[
                {"filename": "big.pdf_chunk_1", "parsedContent": {"text": "part one"}},
                {"filename": "big.pdf_chunk_2", "parsedContent": "part two"},
            ],
        )

        response = client.post("/api/v1/smart-summary", json=body)

        data = response.json()
        assert data["filename"] == "big.pdf_chunk_1"
        assert data["chunkCount"] == 2
        assert data["summary"] == "merged summary"
        assert "(Part 2 of 2)" in llm.calls[1]["messages"][-1]["content"]

    def test_summary_failure_reported_in_body(self, client):
        body = summary_body(document={"filename": "bad.pdf", "parsedContent": "poison"})

        response = client.post("/api/v1/smart-summary", json=body)

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is False
        assert data["error"] == "model overloaded"
        assert data["wordCount"] == 0

    @pytest.mark.parametrize(
        "overrides,message",
        [
            ({"document": None}, "Must provide either"),
            (
                {"documentChunks": [{"filename": "a", "parsedContent": "x"}]},
                "not both",
            ),
            ({"extractionScope": ""}, "extractionScope"),
            ({"scopeDescription": None}, "scopeDescription"),
            ({"document": {"filename": "a.pdf"}}, "Invalid document structure"),
            ({"document": {"filename": "a.pdf", "parsedContent": ""}}, "Invalid document"),
            ({"document": None, "documentChunks": []}, "cannot be empty"),
            (
                {"document": None, "documentChunks": [{"parsedContent": "x"}]},
                "Missing filename in first chunk",
            ),
            (
                {
                    "document": None,
                    "documentChunks": [
                        {"filename": "a", "parsedContent": "x"},
                        {"filename": "a"},
                    ],
                },
                "Missing parsedContent in chunk 1",
            ),
        ],
    )
    def test_invalid_requests_rejected(self, client, llm, overrides, message):
        response = client.post("/api/v1/smart-summary", json=summary_body(**overrides))

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert message in error["message"]
        assert llm.calls == []

    def test_missing_llm_key(self, client, mock_settings):
        mock_settings.llm.groq_api_key = None

        response = client.post("/api/v1/smart-summary", json=summary_body())

        assert response.status_code == 500
        assert response.json()["error"]["code"] == "CONFIGURATION_ERROR"


class TestClassify:
    def test_classify(self, client):
        response = client.post(
            "/api/v1/classify",
            json={
                "documents": [
                    {"filename": "model.xlsx", "content": "P&L", "metadata": {"type": "excel"}},
                    {"filename": "deck.pdf", "content": "Pitch"},
                ],
                "projectContext": "Series A SaaS",
            },
        )

        assert response.status_code == 200
        classifications = response.json()["classifications"]
        assert [c["filename"] for c in classifications] == ["model.xlsx", "deck.pdf"]
        assert classifications[0]["category"] == "chapter"
        assert classifications[0]["relevantChapters"] == ["Finance & Operations"]

    def test_regenerate(self, client):
        response = client.post(
            "/api/v1/classify/regenerate",
            json={"document": {"filename": "deck.pdf", "content": "Pitch"}},
        )

        assert response.status_code == 200
        assert response.json()["filename"] == "deck.pdf"

    def test_schema_errors_are_422(self, client):
        response = client.post("/api/v1/classify", json={"projectContext": "x"})

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"


class TestChunking:
    def test_plan(self, client):
        text = " ".join(["abc"] * 200)

        response = client.post(
            "/api/v1/chunking/plan", json={"content": text, "maxTokens": 50, "overlapTokens": 5}
        )

        data = response.json()
        assert response.status_code == 200
        assert data["needsChunking"] is True
        assert data["chunkCount"] == len(data["chunks"]) > 1
        assert data["originalTokenCount"] == 200

    def test_plan_for_chunk_count(self, client):
        text = "a " * 5000

        response = client.post("/api/v1/chunking/plan", json={"content": text, "chunkCount": 3})

        data = response.json()
        assert data["needsChunking"] is True
        assert data["chunkCount"] >= 3

    def test_plan_rejects_non_positive_budget(self, client):
        response = client.post("/api/v1/chunking/plan", json={"content": "x", "maxTokens": 0})
        assert response.status_code == 422

    @pytest.mark.parametrize(
        "body",
        [
            {"maxTokens": 100, "overlapTokens": 100},
            {"maxTokens": 100, "overlapTokens": 200},
            {"maxTokens": 100, "chunkCount": 3},
        ],
    )
    def test_plan_rejects_conflicting_budgets(self, client, body):
        response = client.post("/api/v1/chunking/plan", json={"content": "a " * 20000, **body})

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_plan_rejects_overlap_above_derived_budget(self, client):
        response = client.post(
            "/api/v1/chunking/plan",
            json={"content": "a " * 5000, "chunkCount": 3, "overlapTokens": 5000},
        )

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert error["message"] == "overlap_tokens must be less than max_tokens"

    def test_analyze(self, client):
        response = client.post("/api/v1/chunking/analyze", json={"content": "a" * 4000})

        data = response.json()
        assert data["shouldChunk"] is False
        assert data["estimatedChunks"] == 1
        assert data["analysis"] == {"wordCount": 1, "tokenCount": 1000}


def test_request_id_echoed(client):
    response = client.get("/health", headers={"X-Request-ID": "req-42"})
    assert response.headers["X-Request-ID"] == "req-42"
    assert client.get("/health").headers["X-Request-ID"]
