"""
Response agent: asks the completion service (Groq) to answer from the relevant rows only.
The client is injected; build_groq_client() makes one with a bounded timeout and one retry.
"""
import logging
from typing import Any, Optional, Sequence

from utils.errors import CompletionError

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "llama-3.3-70b-versatile"

SYSTEM_PROMPT = (
    "You are a precise data analyst. Answer the query using ONLY the data provided, "
    "showing all relevant statistics including session counts, ratings, and other metrics."
)

TRUNCATION_NOTE = "(Data truncated to fit the prompt; {shown} of {total} selected rows shown.)"


def build_groq_client(api_key: Optional[str], timeout_seconds: float = 30.0, max_retries: int = 1):
    """Groq client, or None when no API key is configured."""
    if not api_key:
        return None
    from groq import Groq

    return Groq(api_key=api_key, timeout=timeout_seconds, max_retries=max_retries)


def _bound_data(csv_text: str, max_chars: int) -> tuple:
    """Keep whole lines (header first) within max_chars. Returns (text, data_lines_kept, truncated)."""
    lines = csv_text.splitlines(keepends=True)
    if not lines or len(csv_text) <= max_chars:
        return csv_text, max(len(lines) - 1, 0), False
    kept = [lines[0]]
    size = len(lines[0])
    for line in lines[1:]:
        if size + len(line) > max_chars:
            break
        kept.append(line)
        size += len(line)
    return "".join(kept), len(kept) - 1, True


def build_prompt(
    query: str,
    total_count: int,
    relevant_count: int,
    instructors: Sequence[str],
    domains: Sequence[str],
    csv_text: str,
    max_data_chars: int = 60000,
) -> str:
    data, shown, truncated = _bound_data(csv_text, max_data_chars)
    note = ("\n" + TRUNCATION_NOTE.format(shown=shown, total=relevant_count) + "\n") if truncated else ""
    return f"""You are analyzing data from a session ratings sheet. The full dataset has {total_count} rows, but I'm providing you with {relevant_count} rows that are most relevant to the query.

User query: "{query}"

Dataset information:
- Available instructors: {', '.join(instructors)}
- Available domains: {', '.join(domains)}
- Selected rows: {relevant_count} out of {total_count} total

Here is the CSV data of the relevant rows:

{data}{note}
Please analyze this data to answer the query, focusing on:
1. Accurate counts of sessions
2. Precise calculation of average ratings
3. All available information for the instructor(s) or domain(s) mentioned
4. Clear presentation of results with all relevant details

Your answer should be comprehensive and include ALL statistics that can be derived from the data, especially ratings when available.
"""


class CompletionAnalyzer:
    def __init__(
        self,
        client: Any,
        model: str = DEFAULT_MODEL,
        max_tokens: int = 4096,
        temperature: float = 0.1,
        max_data_chars: int = 60000,
    ):
        self.client = client
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.max_data_chars = max_data_chars

    def analyze(
        self,
        query: str,
        total_count: int,
        csv_text: str,
        relevant_count: int,
        instructors: Sequence[str],
        domains: Sequence[str],
    ) -> str:
        """Return the trimmed answer text. Raises CompletionError on any service or shape failure."""
        prompt = build_prompt(
            query, total_count, relevant_count, instructors, domains, csv_text, self.max_data_chars
        )
        logger.info("completion_request: model=%s relevant=%d total=%d", self.model, relevant_count, total_count)
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
        except Exception as exc:
            logger.warning("completion_failed: %s", exc.__class__.__name__)
            raise CompletionError(f"Completion service call failed: {exc}") from exc

        try:
            content = response.choices[0].message.content
        except (AttributeError, IndexError, TypeError) as exc:
            raise CompletionError("Completion response has no answer content") from exc
        content = (content or "").strip()
        if not content:
            raise CompletionError("Completion response was empty")
        return content
