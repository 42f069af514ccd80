"""Tests for document classification."""

import json

import pytest

from memo_triage.models.classification import (
    ClassificationInput,
    DocumentCategory,
    DocumentMetadata,
)
from memo_triage.services.classification_service import (
    FALLBACK_REASONING,
    MISSING_REASONING,
    ClassificationService,
    normalize_filename,
    parse_classifications,
)
from memo_triage.utils.errors import (
    ClassificationError,
    ConfigurationError,
    LLMError,
    ResponseFormatError,
)


def make_doc(filename, content="Some content", file_type="application/pdf", size=2048):
    return ClassificationInput(
        filename=filename,
        content=content,
        metadata=DocumentMetadata(type=file_type, size=size),
    )


def answer(*entries):
    return json.dumps({"classifications": list(entries)})


def entry(filename, category="universal", confidence=0.9, **extra):
    return {
        "filename": filename,
        "classification": category,
        "reasoning": f"{filename} reasoning",
        "confidence": confidence,
        **extra,
    }


def listed_documents(call):
    """Documents sent to the model in one classification call."""
    prompt = call["messages"][-1]["content"]
    return json.loads(prompt.split("Classify these documents:\n", 1)[1])


def echo_handler(messages):
    """Classify every listed document as universal."""
    prompt = messages[-1]["content"]
    docs = json.loads(prompt.split("Classify these documents:\n", 1)[1])
    return answer(*(entry(d["filename"]) for d in docs))


@pytest.fixture
def service_factory(fake_llm_factory, fast_retry):
    def factory(**llm_kwargs):
        llm = fake_llm_factory(**llm_kwargs)
        return ClassificationService(llm_client=llm, retry_policy=fast_retry), llm

    return factory


class TestNormalizeFilename:
    def test_case_and_whitespace(self):
        assert normalize_filename("  Pitch   Deck.PDF ") == "pitch deck.pdf"

    def test_spaces_around_dashes(self):
        assert normalize_filename("Q3 - Board - Update.pptx") == "q3-board-update.pptx"


class TestParseClassifications:
    def test_wrapped_list(self):
        parsed = parse_classifications(answer(entry("a.pdf", relevantChapters=["Team"])))
        assert parsed == [
            {
                "filename": "a.pdf",
                "category": "universal",
                "reasoning": "a.pdf reasoning",
                "confidence": 0.9,
                "relevant_chapters": ["Team"],
                "key_insights": [],
            }
        ]

    def test_bare_list_and_single_object(self):
        assert len(parse_classifications(json.dumps([entry("a"), entry("b")]))) == 2
        assert parse_classifications(json.dumps(entry("a")))[0]["filename"] == "a"

    def test_category_alias_and_case(self):
        raw = json.dumps({"filename": "x", "category": "NOISE", "reasoning": "r", "confidence": 1})
        assert parse_classifications(raw)[0]["category"] == "noise"

    def test_snake_case_list_fields(self):
        raw = json.dumps([entry("x", relevant_chapters=["Legal and IP"], key_insights=["IP"])])
        parsed = parse_classifications(raw)[0]
        assert parsed["relevant_chapters"] == ["Legal and IP"]
        assert parsed["key_insights"] == ["IP"]

    @pytest.mark.parametrize(
        "raw",
        [
            "not json",
            json.dumps([{"classification": "noise", "reasoning": "r", "confidence": 1}]),
            json.dumps([{"filename": "x", "reasoning": "r", "confidence": 1}]),
            json.dumps([{"filename": "x", "classification": "noise", "confidence": 1}]),
            json.dumps([{"filename": "x", "classification": "noise", "reasoning": "r"}]),
            json.dumps([entry("x", confidence="0.9")]),
            json.dumps([entry("x", confidence=True)]),
            json.dumps(["just a string"]),
        ],
    )
    def test_malformed_answers_rejected(self, raw):
        with pytest.raises(ResponseFormatError):
            parse_classifications(raw)


class TestClassifyDocuments:
    @pytest.mark.asyncio
    async def test_documents_processed_in_batches_of_ten(self, service_factory):
        service, llm = service_factory(handler=echo_handler)
        documents = [make_doc(f"doc{i}.pdf") for i in range(25)]

        results = await service.classify_documents(documents)

        assert [len(listed_documents(call)) for call in llm.calls] == [10, 10, 5]
        assert [r.filename for r in results] == [d.filename for d in documents]
        assert all(call["json_mode"] for call in llm.calls)

    @pytest.mark.asyncio
    async def test_batch_size_from_settings(self, service_factory, mock_settings):
        mock_settings.classification.classification_batch_size = 2
        service, llm = service_factory(handler=echo_handler)

        await service.classify_documents([make_doc(f"d{i}") for i in range(5)])

        assert len(llm.calls) == 3

    @pytest.mark.asyncio
    async def test_project_context_in_prompt(self, service_factory):
        service, llm = service_factory(handler=echo_handler)

        await service.classify_documents([make_doc("a.pdf")], project_context="Series A fintech")

        prompt = llm.calls[0]["messages"][-1]["content"]
        assert prompt.startswith("Project Context: Series A fintech\n\n")

    @pytest.mark.asyncio
    async def test_preview_truncated_for_regular_documents(self, service_factory):
        service, llm = service_factory(handler=echo_handler)

        await service.classify_documents(
            [make_doc("long.pdf", content="x" * 5000, size=3 * 1024 * 1024)]
        )

        info = listed_documents(llm.calls[0])[0]
        assert len(info["preview"]) == 1500
        assert info["hasMoreContent"] is True
        assert info["fileSizeMB"] == "3.00MB"
        assert info["fileType"] == "application/pdf"

    @pytest.mark.asyncio
    async def test_spreadsheets_get_longer_preview(self, service_factory):
        service, llm = service_factory(handler=echo_handler)
        sheet = make_doc(
            "model.xlsx",
            content="y" * 5000,
            file_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        )

        await service.classify_documents([sheet, make_doc("short.pdf", content="brief")])

        infos = listed_documents(llm.calls[0])
        assert len(infos[0]["preview"]) == 3000
        assert infos[1]["preview"] == "brief"
        assert infos[1]["hasMoreContent"] is False

    @pytest.mark.asyncio
    async def test_filename_mismatch_repaired(self, service_factory):
        raw = answer(entry("pitch deck - final.PDF", category="chapter", relevantChapters=["Team"]))
        service, _ = service_factory(responses=[raw])

        results = await service.classify_documents([make_doc("Pitch Deck-Final.pdf")])

        assert len(results) == 1
        assert results[0].filename == "Pitch Deck-Final.pdf"
        assert results[0].category == DocumentCategory.CHAPTER
        assert results[0].relevant_chapters == ["Team"]

    @pytest.mark.asyncio
    async def test_missing_documents_default_to_context(self, service_factory):
        service, _ = service_factory(responses=[answer(entry("a.pdf"))])

        results = await service.classify_documents([make_doc("a.pdf"), make_doc("b.pdf")])

        assert [r.filename for r in results] == ["a.pdf", "b.pdf"]
        missing = results[1]
        assert missing.category == DocumentCategory.CONTEXT
        assert missing.confidence == 0.3
        assert missing.reasoning == MISSING_REASONING

    @pytest.mark.asyncio
    async def test_unknown_and_duplicate_entries_ignored(self, service_factory):
        raw = answer(entry("a.pdf"), entry("ghost.pdf"), entry("a.pdf", category="noise"))
        service, _ = service_factory(responses=[raw])

        results = await service.classify_documents([make_doc("a.pdf")])

        assert len(results) == 1
        assert results[0].category == DocumentCategory.UNIVERSAL

    @pytest.mark.asyncio
    async def test_malformed_answer_retried(self, service_factory, recording_sleep):
        service, llm = service_factory(responses=["{not json", answer(entry("a.pdf"))])

        results = await service.classify_documents([make_doc("a.pdf")])

        assert results[0].category == DocumentCategory.UNIVERSAL
        assert len(llm.calls) == 2
        assert recording_sleep.delays == [1.0]

    @pytest.mark.asyncio
    async def test_out_of_range_confidence_is_a_format_error(self, service_factory):
        service, llm = service_factory(
            responses=[answer(entry("a.pdf", confidence=7)), answer(entry("a.pdf"))]
        )

        results = await service.classify_documents([make_doc("a.pdf")])

        assert results[0].confidence == 0.9
        assert len(llm.calls) == 2

    @pytest.mark.asyncio
    async def test_exhausted_retries_fall_back_per_batch(self, service_factory, mock_settings):
        mock_settings.classification.classification_batch_size = 2
        outcomes = [LLMError("down")] * 3

        def handler(messages):
            if outcomes:
                return outcomes.pop()
            return echo_handler(messages)

        service, llm = service_factory(handler=handler)

        results = await service.classify_documents([make_doc(f"d{i}") for i in range(4)])

        assert len(llm.calls) == 4
        assert [r.confidence for r in results] == [0.5, 0.5, 0.9, 0.9]
        assert results[0].category == DocumentCategory.CONTEXT
        assert results[0].reasoning == FALLBACK_REASONING
        assert results[0].relevant_chapters == []

    @pytest.mark.asyncio
    async def test_configuration_error_propagates(self, service_factory):
        service, llm = service_factory(responses=[ConfigurationError("Groq API key not configured")])

        with pytest.raises(ConfigurationError):
            await service.classify_documents([make_doc("a.pdf")])
        assert len(llm.calls) == 1

    @pytest.mark.asyncio
    async def test_empty_input(self, service_factory):
        service, llm = service_factory()
        assert await service.classify_documents([]) == []
        assert llm.calls == []


class TestRegenerate:
    @pytest.mark.asyncio
    async def test_returns_single_classification(self, service_factory):
        raw = answer(entry("cap table.xlsx", category="chapter", keyInsights=["ownership"]))
        service, _ = service_factory(responses=[raw])

        result = await service.regenerate_classification(make_doc("cap table.xlsx"))

        assert result.category == DocumentCategory.CHAPTER
        assert result.key_insights == ["ownership"]

    @pytest.mark.asyncio
    async def test_missing_answer_defaults_to_context(self, service_factory):
        service, _ = service_factory(responses=[answer()])

        result = await service.regenerate_classification(make_doc("a.pdf"))

        assert result.category == DocumentCategory.CONTEXT
        assert result.confidence == 0.3

    def test_classification_error_carries_filename(self):
        error = ClassificationError("Failed to regenerate classification", filename="a.pdf")
        assert error.details["filename"] == "a.pdf"
