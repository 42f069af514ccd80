"""Prompt templates for classification and summarization calls."""

import json
from typing import Any, Dict, List, Optional

SUMMARY_SYSTEM_PROMPT = (
    "You are an expert document analyst specializing in extracting and summarizing "
    "key business information from various document types."
)

MERGE_SYSTEM_PROMPT = (
    "You are an expert document analyst specializing in creating comprehensive, "
    "cohesive summaries from multiple document parts."
)

SUMMARY_PROMPT_TEMPLATE = """You are an expert document analyst. Your task is to extract and summarize key information from the provided document content based on the specified extraction scope. The scope description tells you what to focus on during extraction.

EXTRACTION SCOPE: {extraction_scope}
SCOPE DESCRIPTION: {scope_description}

INSTRUCTIONS:
1. Focus specifically on information relevant to the "{extraction_scope}" scope
2. Extract key facts, figures and insights that align with the scope description
3. Maintain accuracy and cite specific details when available
4. If the content doesn't contain relevant information for this scope, state that clearly
5. Be concise but comprehensive. There is no page limit
6. NEVER PARAPHRASE, always use the exact words from the document
7. NEVER ADD NEW INFORMATION. Everything in the summary MUST come from the document. Do not infer or calculate.
8. ONLY include information relevant to the scope

EXECUTION GUIDELINES:
Think step by step:
- Step 1: Analyze the scope description and define the items to look for in the document.
- Step 2: Remember the INSTRUCTIONS before continuing.
- Step 3: Go through the document and extract information relevant to the plan.
- Step 4: Compose the final result.
{chunk_info}

DOCUMENT CONTENT:
{content_text}

OUTPUT INSTRUCTIONS:
Provide the summary as markdown and prefer bullet points and lists. NEVER PARAPHRASE, always use the exact words from the document. Output only the summary, no other text."""

MERGE_PROMPT_TEMPLATE = """You are an expert document analyst. You have received summaries from different parts of the same document. Parts may overlap at their boundaries. Your task is to create a comprehensive, cohesive final summary.

DOCUMENT: {filename}

INSTRUCTIONS:
1. Combine the information from all parts into a single, cohesive summary
2. Remove redundancy and consolidate similar or duplicated information
3. Maintain all key facts, figures and insights
4. Ensure the final summary flows logically
5. NEVER PARAPHRASE, always use the exact words from the document
6. NEVER ADD NEW INFORMATION. Everything in the summary MUST come from the parts. Do not infer or calculate.
7. There is no page limit. The goal is one document without redundancy.

PART SUMMARIES:
{combined_summaries}

OUTPUT INSTRUCTIONS:
Provide the final summary as markdown and prefer bullet points and lists. NEVER PARAPHRASE, always use the exact words from the document. Output only the summary, no other text."""

CLASSIFICATION_SYSTEM_PROMPT = """# Document Classification for Investment Memo Auto-Triage

## Your Role
You are an expert document classifier for investment analysis across all industries (startups, scaleups, real estate, medical devices, technology, manufacturing and more). Classify each uploaded document by its value for writing a comprehensive investment memo.

## Classification Categories
1. universal: significant value across multiple memo chapters (pitch decks, complete financial summaries, board presentations, investor updates).
2. chapter: highly valuable for 1-3 specific chapters but noise elsewhere. You must list the chapters.
3. context: supporting background, not of primary importance (news articles, one-pagers, marketing material).
4. noise: irrelevant, corrupted, duplicated or too costly for the value it adds.

## Investment Memo Chapters
1. Opportunity Validation
2. Product & Technology
3. Market Research
4. Competitive Analysis
5. Business Model
6. Sales, Marketing, GTM
7. Unit Economics
8. Finance & Operations
9. Team
10. Legal and IP

## Special Handling
- Excel files: examine tab names AND content. Tabs named "Key Metrics" or similar are universal. Balance sheets, P&L, proforma models and cost comparisons belong to Finance & Operations.
- Documents over 10MB must provide exceptional value to avoid noise.
- Drafts and templates are context unless comprehensive.

## Output Format
Return ONLY a valid JSON object:
{
  "classifications": [
    {
      "filename": "exact filename as provided",
      "classification": "universal|chapter|context|noise",
      "reasoning": "One sentence explaining the classification decision",
      "confidence": 0.95,
      "relevant_chapters": ["Chapter 1", "Chapter 8"],
      "key_insights": ["Brief description of primary value"]
    }
  ]
}

CRITICAL REQUIREMENTS:
1. COPY THE FILENAME EXACTLY. Any filename mismatch causes processing errors.
2. classification MUST be one of: universal, chapter, context, noise.
3. confidence is a number, not a string.
4. relevant_chapters is REQUIRED for chapter, an empty array otherwise.
5. Return ALL documents in a single "classifications" array."""


def build_summary_prompt(
    content_text: str,
    extraction_scope: str,
    scope_description: str,
    chunk_index: int,
    total_chunks: int,
) -> str:
    """Prompt for summarizing one chunk. Multi-part documents get a part marker."""
    chunk_info = f"\n (Part {chunk_index + 1} of {total_chunks})\n" if total_chunks > 1 else ""
    return SUMMARY_PROMPT_TEMPLATE.format(
        extraction_scope=extraction_scope,
        scope_description=scope_description,
        chunk_info=chunk_info,
        content_text=content_text,
    )


def combine_part_summaries(summaries: List[str]) -> str:
    """Join partial summaries in order, each headed with its 1-based part number."""
    return "\n\n".join(
        f"=== Part {index + 1} ===\n{summary}" for index, summary in enumerate(summaries)
    )


def build_merge_prompt(summaries: List[str], filename: str) -> str:
    return MERGE_PROMPT_TEMPLATE.format(
        filename=filename, combined_summaries=combine_part_summaries(summaries)
    )


def build_classification_prompt(
    documents_info: List[Dict[str, Any]], project_context: Optional[str] = None
) -> str:
    """User message listing document previews to classify."""
    listing = json.dumps(documents_info, indent=2, ensure_ascii=False)
    if project_context:
        return f"Project Context: {project_context}\n\nClassify these documents:\n{listing}"
    return f"Classify these documents:\n{listing}"
