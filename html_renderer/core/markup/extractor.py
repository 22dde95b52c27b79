"""
Markup Extractor
================

Pulls renderable HTML out of a raw text payload that may be wrapped in a
markdown fenced code block (as LLM-generated reports usually are).
"""

import re

# First fenced block, optionally tagged as html; non-greedy so it stops at the
# first closing fence.
CODE_FENCE_PATTERN = re.compile(r"```(?:html)?\s*([\s\S]*?)```")


def extract_html(text: str) -> str:
    """
    Return the HTML to render from a raw payload.

    If the payload contains a fenced code block, the trimmed interior of the
    first one is returned and any further fences are ignored. Otherwise the
    payload is returned unchanged.

    Args:
        text: Raw request body

    Returns:
        Renderable HTML
    """
    match = CODE_FENCE_PATTERN.search(text)
    if match and match.group(1):
        return match.group(1).strip()
    return text
