"""Prompt builders for ask / categorize / source summary / source clusters."""

from __future__ import annotations

import re
from typing import List, Optional, Sequence

from core import SourceSummaryResult


UNUSABLE_SENTINEL = "UNUSABLE_SOURCE"

_LANG_TAG_RE = re.compile(r"^([A-Za-z]{2})(?:-([A-Za-z]{2}))?$")

TRUSTED_SOURCES: List[str] = [
    "Reuters",
    "AP News",
    "BBC",
    "NPR",
    "Weibo",
    "CNN",
    "网易",
    "CCTV",
    "Hacker News",
    "Reddit",
    "Stack Overflow",
    "Wikipedia",
]

ASK_SYSTEM_PROMPT = (
    "Answer clearly and concisely. Keep the answer practical. "
    "Do not mention underlying model, vendor, or provider."
)

CATEGORIZATION_SYSTEM_PROMPT = f"""
You are an analyst that groups viewpoints by source quality and source identity.
Use this trusted source priority order first when possible:
{chr(10).join(f"{idx}) {name}" for idx, name in enumerate(TRUSTED_SOURCES, start=1))}

Instructions:
- Categorize the response into source-based opinion buckets.
- Cluster by trusted-source alignment: group trusted sources that express similar opinions into one cluster.
- Consolidate similar opinions into a single paragraph per cluster rather than repeating per source.
- Prefer the prioritized trusted sources above when relevant.
- If information is not available from the trusted list, you may include additional sources, but mark them clearly as "Additional source (not in prioritized list)".
- Do not invent direct quotes or fake citations.
- Match the response language to the original question language.
- Keep output concise and structured with headings.
- Use clear paragraph breaks. Do not return one long line.
- Keep total output at or below 500 words.
- Do not mention underlying model, vendor, or provider.
- End with a short "Coverage Notes" section calling out where evidence is weak or inferred.
""".strip()


def normalize_language(value: Optional[str]) -> Optional[str]:
    """Return a canonical `xx` / `xx-YY` tag, or None when the input does not match."""
    text = str(value or "").strip()
    match = _LANG_TAG_RE.match(text)
    if not match:
        return None
    primary, region = match.group(1).lower(), match.group(2)
    return f"{primary}-{region.upper()}" if region else primary


def _language_instruction(lang: Optional[str], fallback: str) -> str:
    if lang:
        return f"Write the entire response in the language identified by the tag '{lang}'."
    return fallback


def build_categorize_prompt(question: str, answer: str, sources: Sequence[str]) -> str:
    answer_section = (
        f"Current answer to categorize:\n{answer}"
        if answer
        else "No pre-generated answer was provided. Build the categorized summary directly from the question."
    )
    numbered = "\n".join(f"{idx}. {name}" for idx, name in enumerate(sources, start=1))
    return f"""
Original question:
{question}

{answer_section}

Selected prioritized sources:
{numbered}

Please return:
1) "### Clustered Source Views" with 2-4 clusters.
2) For each cluster use this exact shape:
   - "#### Cluster N: <theme>"
   - "Sources: <comma-separated sources>"
   - One short paragraph with the consolidated shared opinion for those sources.
3) Do not create one subsection per source when sources are saying the same thing.
4) "### Additional source (not in prioritized list)" only if needed.
5) "### Consensus / Disagreement Summary" with 3-6 bullets.
6) "### Coverage Notes" with uncertainty/gaps.
7) Insert a blank line between every section and between clusters.
8) Keep the full response to 500 words maximum.
9) Use the same language as the original question.
""".strip()


def build_summary_system_prompt(lang: Optional[str]) -> str:
    language_rule = _language_instruction(
        lang, "Write the summary in the same language the page content is written in."
    )
    return f"""
You summarize the current front page or feed of a single news or discussion outlet.
You only see plain text extracted from the page; markup has been removed and the text may be truncated.

Quality gate:
- If the text is mostly an error page, login wall, paywall, captcha, cookie wall, bot check, or maintenance notice,
  reply with exactly one line and nothing else:
  {UNUSABLE_SENTINEL}: <short reason>

Otherwise:
- Write 4-8 bullet points ("- ") covering the main stories or discussions visible on the page.
- Each bullet is one or two sentences and names concrete subjects (people, places, organisations, products).
- Do not invent facts that are not present in the text.
- Finish with a final bullet starting with "Limits:" describing what the extracted text could not show.
- {language_rule}
- Do not mention underlying model, vendor, or provider.
""".strip()


def build_summary_user_prompt(name: str, url: str, page_text: str) -> str:
    return f"""
Source name: {name}
Source URL: {url}

Extracted page text:
{page_text}
""".strip()


def build_cluster_system_prompt(lang: Optional[str], max_clusters: int) -> str:
    language_rule = _language_instruction(
        lang, "Write in the language used by the majority of the summaries."
    )
    return f"""
You merge per-outlet news summaries into cross-source topic clusters.

Rules:
- Produce at most {max_clusters} clusters.
- A cluster groups stories that describe the same event or topic across outlets.
- Order clusters by the number of distinct sources covering them, most sources first.
- For every cluster use exactly this shape:
  "### <rank>. <cluster title>"
  "Sources: <comma-separated source names>"
  "Source count: <number>"
  followed by 2-4 bullets ("- ") with the shared facts and notable differences between outlets.
- Single-source topics may appear after multi-source clusters.
- Only use information present in the summaries. Do not invent sources.
- {language_rule}
- Do not mention underlying model, vendor, or provider.
""".strip()


def build_cluster_user_prompt(summaries: Sequence[SourceSummaryResult], per_source_chars: int) -> str:
    blocks = []
    for idx, item in enumerate(summaries, start=1):
        blocks.append(
            f"[{idx}] Source: {item.source_name}\n"
            f"URL: {item.source_url}\n"
            f"Summary:\n{item.summary.strip()[:per_source_chars]}"
        )
    return "Per-source summaries:\n\n" + "\n\n".join(blocks)
