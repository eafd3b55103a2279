"""Pulls source code out of a Markdown-formatted LLM reply."""

from swagger_test_agent.targets import JAVA, TargetProfile

FENCE = "```"

# Fenced blocks shorter than this are treated as snippets, not the answer
MIN_BLOCK_LINES = 3


def extract_code(text: str, target: TargetProfile = JAVA) -> str:
    """Return the code inside the reply's fenced blocks.

    Lines starting with a fence (optionally tagged, e.g. ```java) toggle between
    outside and inside; interior lines of every block are concatenated. Replies
    without any fence come back unchanged. When the fenced content is
    implausibly short but the whole reply still looks like code, the whole
    reply is returned instead.
    """
    inside = False
    found_fence = False
    collected: list[str] = []

    for line in text.splitlines():
        if line.lstrip().startswith(FENCE):
            found_fence = True
            inside = not inside
            continue
        if inside:
            collected.append(line)

    if not found_fence:
        return text

    extracted = "\n".join(collected)
    if _count_nonblank(extracted) < MIN_BLOCK_LINES and looks_like_code(text, target):
        return text
    return extracted


def looks_like_code(text: str, target: TargetProfile = JAVA) -> bool:
    """Heuristic: does the text contain a test class or test method marker?"""
    return target.class_marker in text or target.test_marker in text


def _count_nonblank(text: str) -> int:
    return sum(1 for line in text.splitlines() if line.strip())
