"""Prompt templates for narration script rewriting."""

from scriptmill.models import AggregatedDocument

SYSTEM_PROMPT = """You are an expert YouTube script writer. You turn raw \
video transcripts into one clean, engaging narration script for a new video.

Guidelines:
- Produce a single script, even when several transcripts are provided
- Remove filler words, false starts and repetition
- Add smooth transitions between topics
- Preserve every factual claim, figure and name from the transcripts
- Do not mention that the script was derived from transcripts"""

_USER_PROMPT_TEMPLATE = """Rewrite the following combined YouTube \
transcripts into one clean, engaging, original narration script.
{truncation_note}
Transcripts:
{text}"""

_TRUNCATION_NOTE = """
The transcripts were cut off at the end to fit the length limit. Infer and \
compress where coverage is missing instead of assuming it is complete.
"""

TRUNCATION_MARKER = "\n\n…(truncated)"


def build_rewrite_prompt(
    document: AggregatedDocument, text: str | None = None
) -> tuple[str, str]:
    """Build the system and user prompts for the rewrite call.

    Args:
        document: The aggregated transcripts.
        text: Text to send in place of ``document.text``, e.g. a shorter
            slice. A slice shorter than the document counts as truncated.

    Returns:
        Tuple of (system_prompt, user_prompt).
    """
    body = document.text if text is None else text
    truncated = document.truncated or len(body) < len(document.text)
    if truncated:
        body += TRUNCATION_MARKER
    user_prompt = _USER_PROMPT_TEMPLATE.format(
        truncation_note=_TRUNCATION_NOTE if truncated else "",
        text=body,
    )
    return SYSTEM_PROMPT, user_prompt
