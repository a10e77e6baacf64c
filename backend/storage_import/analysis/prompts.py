"""
Prompts for the text analyzer.

All analyzer prompts are centralised here so they can be iterated on
without touching the analyzer logic.
"""

from __future__ import annotations


SYSTEM_PROMPT = (
    "You analyse sales-related content for a CRM. "
    "Respond with a single valid JSON object and nothing else."
)


# ═══════════════════════════════════════════════════════════
#  Per-type focus
# ═══════════════════════════════════════════════════════════

ANALYSIS_FOCUS: dict[str, str] = {
    "meeting_transcript": (
        "This is a meeting transcript. Capture decisions, commitments made by either side, "
        "objections raised and agreed next steps."
    ),
    "proposal": (
        "This is a sales proposal. Capture scope, pricing, terms and anything the buyer must "
        "confirm or approve."
    ),
    "contract": (
        "This is a contract or agreement. Capture parties, obligations, renewal and termination "
        "terms and any deadlines."
    ),
    "general_document": "This is a business document. Capture its purpose and key points.",
    "email_thread": (
        "This is an email thread. Capture what is being asked, by whom, and whether a reply "
        "is expected."
    ),
}


# ═══════════════════════════════════════════════════════════
#  Analysis prompt
# ═══════════════════════════════════════════════════════════

ANALYSIS_PROMPT = """
{focus}

File: {file_name}

Content:
{text}

Return JSON with exactly these keys:
{{
  "summary": "2-3 sentence summary",
  "action_items": [
    {{"description": "specific task", "owner": "name or null", "deadline": "ISO 8601 date or null", "priority": "high|medium|low"}}
  ],
  "sentiment": "positive|neutral|negative|urgent",
  "key_points": ["short bullet"],
  "risks": ["short bullet"]
}}

Only include action items that are clearly stated or agreed.
""".strip()


def build_analysis_prompt(text: str, metadata: dict) -> str:
    analysis_type = metadata.get("analysis_type") or "general_document"
    return ANALYSIS_PROMPT.format(
        focus=ANALYSIS_FOCUS.get(analysis_type, ANALYSIS_FOCUS["general_document"]),
        file_name=metadata.get("file_name") or "unknown",
        text=text,
    )
