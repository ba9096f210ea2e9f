"""Prompt for reviewing a single diff hunk."""

from pr_reviewer.models.diff import Chunk
from pr_reviewer.models.review import PRMetadata

DEFAULT_REVIEW_INSTRUCTIONS = """Your task is to review pull requests. Instructions:
- Do not give positive comments or compliments.
- Provide comments and suggestions ONLY if there is something to improve, otherwise "reviews" should be an empty array.
- Write the comment in GitHub Markdown format.
- Use the given description only for the overall context and only comment the code.
- IMPORTANT: NEVER suggest adding comments to the code."""

# Always appended, also after a custom template: the reply parser depends on it.
RESPONSE_FORMAT_INSTRUCTION = (
    "- Provide the response in following JSON format: "
    '{"reviews": [{"lineNumber": <line_number>, "reviewComment": "<review comment>"}]}'
)


def format_chunk(chunk: Chunk) -> str:
    """Render a hunk with the line number of every line in front of it.

    Args:
        chunk: Hunk to render

    Returns:
        The hunk header followed by one ``<number> <marker><content>`` line per change
    """
    lines = [chunk.header]
    for change in chunk.changes:
        lines.append(f"{change.resolved_line_number} {change.marker}{change.content}")
    return "\n".join(lines)


def build_review_prompt(
    file_path: str,
    chunk: Chunk,
    pr: PRMetadata,
    instructions: str | None = None,
) -> str:
    """
    Generate the prompt asking the model to review one hunk.

    Args:
        file_path: Destination path of the file the hunk belongs to
        chunk: The hunk to review
        pr: Pull request metadata used as context
        instructions: Custom review instructions replacing the default ones

    Returns:
        Formatted prompt string for the LLM
    """
    instructions = (instructions or "").strip() or DEFAULT_REVIEW_INSTRUCTIONS

    prompt = f"""{instructions}
{RESPONSE_FORMAT_INSTRUCTION}

Review the following code diff in the file "{file_path}" and take the pull request title and description into account when writing the response.

Pull request title: {pr.title}
Pull request description:

---
{pr.description}
---

Git diff to review:

```diff
{format_chunk(chunk)}
```
"""

    return prompt
