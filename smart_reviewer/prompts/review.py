"""Prompts for pull request summaries and hunk reviews."""

from smart_reviewer.services.llm.base import Message
from smart_reviewer.services.review.context import ChangeFile, FileDiff, PullRequestContext

DEFAULT_SYSTEM_PROMPT = """You are a highly meticulous and logically rigorous software development assistant.
Your approach is characterized by strict validation, self-reflection, and iterative analysis, ensuring that your reviews are consistent and insightful.
You act as a highly experienced software engineer, performing in-depth reviews of modified code (code hunks) and providing concrete code snippets for improvement.

## Key Review Areas
- Logical accuracy and soundness
- Performance and optimization
- Potential data races and concurrency issues
- Consistency and predictable behavior
- Appropriate error handling
- Maintainability and readability
- Modularity and reusability
- Complexity management (keeping the design simple and comprehensible)

## Areas to Avoid Commenting On
- Minor code style issues (e.g., indentation, naming conventions, etc.)
- Lack of comments or documentation

## Review Guidelines
- Maintain consistent evaluation criteria to ensure stable and reliable feedback.
- Focus on identifying and resolving significant issues while deliberately ignoring trivial ones.
- Provide specific improvement suggestions, including code snippets whenever possible.
- For each potential security issue identified, provide an estimated severity level (Critical, High, Medium, Low) and briefly describe the potential impact if exploited.
"""

REVIEW_INSTRUCTIONS = """## IMPORTANT Instructions

Input: New hunks annotated with line numbers and old hunks (replaced code). Hunks represent incomplete code fragments.
Additional Context: PR title, description, summaries, file content and review policy.
Task: Review new hunks for substantive issues using provided context and respond with comments if necessary.
Output: Review comments in markdown with exact line number ranges in new hunks. Start and end line numbers must be within the same hunk. For single-line comments, start=end line number. Must use example response format below.
Use fenced code blocks using the relevant language identifier where applicable.
Don't annotate code snippets with line numbers. Format and indent code correctly.
Do not use `suggestion` code blocks.
For fixes, use `diff` code blocks, marking changes with `+` or `-`. The line number range for comments with fix snippets must exactly match the range to replace in the new hunk.

- Do NOT provide general feedback, summaries, explanations of changes, or praises for making good additions.
- Focus solely on offering specific, objective insights based on the given context.

If there are no issues found on a line range, you MUST respond with the text `LGTM!` for that line range in the review section.

## Example

### Example changes

---new_hunk---
```
20 +def add(x, y):
21 +    z = x + y
22 +    retrn z
23 +
24 +def multiply(x, y):
25 +    return x * y
```

---old_hunk---
```
-def add(x, y):
-    return x + y
```

### Example response

22-22:
There's a syntax error in the add function.
```diff
-    retrn z
+    return z
```
---
24-25:
LGTM!
---
"""

SUMMARIZE_FILE_INSTRUCTIONS = """## Instructions
Analyze the provided patch format file diff and summarize it according to the following instructions:

1. Summarize the contents of the diff in 3 bullet points or less.
2. If there are changes to the signatures of exported functions, global data structures, or variables, describe them specifically.
3. If the purpose of the diff changes can be clearly read from the patch content, include the purpose in one line in the summary.
4. Output only the summary, and no additional explanations or comments are needed.

**Output format:**

* [Summary 1]
* [Summary 2]
* [Summary 3]
"""

RELEASE_NOTES_INSTRUCTIONS = """Generate concise and structured release notes for a Pull Request.
Focus on the purpose and user impact, categorizing changes into one of the following:
"New Feature", "Bug Fix", "Documentation", "Refactor", "Style", "Test", "Chore", or "Revert".

The output format must strictly follow this pattern:
- [Category]: [Change description]

Please write only in bullet points.
Limit the response to 50-100 words. Clearly highlight changes that affect end users, and exclude code-level details.
"""


def build_footer(language: str) -> str:
    return f"\n\n---\n## IMPORTANT:\nWe will communicate in {language}.\n"


def build_system_prompt(system_prompt: str | None, language: str) -> str:
    """Return the configured system prompt, with ``$language`` substituted."""
    prompt = system_prompt or DEFAULT_SYSTEM_PROMPT
    return prompt.replace("${language}", language).replace("$language", language)


def render_file_diff_hunk(diff: FileDiff) -> str:
    """Render a chunk as fenced new/old hunk blocks."""
    to_content = "\n".join(diff.to_hunk.content)
    from_content = "\n".join(diff.from_hunk.content)
    return (
        f"---new_hunk---\n```\n{to_content}\n```\n\n"
        f"---old_hunk---\n```\n{from_content}\n```"
    )


def _pull_request_header(ctx: PullRequestContext) -> list[str]:
    return [
        "## GitHub PR Title",
        "",
        f"`{ctx.title}`",
        "",
        "## Description",
        "",
        "```",
        ctx.description or "",
        "```",
        "",
    ]


def _file_content_block(content: str | None) -> list[str]:
    if not content:
        return []
    return [
        "## File Content Data (Ignore if no content data exists.)",
        "",
        "```",
        content,
        "```",
        "",
    ]


def build_review_prompt(
    ctx: PullRequestContext,
    change: ChangeFile,
    diff: FileDiff,
    language: str = "en-US",
    review_policy: str = "",
    use_file_content: bool = False,
) -> list[Message]:
    """Build the messages asking the model to review one chunk."""
    parts = _pull_request_header(ctx)

    if use_file_content:
        parts.extend(_file_content_block(change.content))

    parts.extend(["## Summary of changes", "", "```", change.summary, "```", ""])

    if review_policy:
        parts.extend(["## Review Policy", "```", review_policy, "```", ""])

    parts.append(REVIEW_INSTRUCTIONS)

    changes = (
        f"## Changes made to `{diff.filename}` for your review\n\n"
        f"{render_file_diff_hunk(diff)}\n"
    )

    return [
        Message(text="\n".join(parts), cache=True),
        Message(text=changes + build_footer(language)),
    ]


def build_summarize_file_prompt(
    ctx: PullRequestContext,
    change: ChangeFile,
    language: str = "en-US",
    use_file_content: bool = False,
) -> list[Message]:
    """Build the messages asking the model to summarize one file's patch."""
    parts = _pull_request_header(ctx)
    if use_file_content:
        parts.extend(_file_content_block(change.content))
    parts.append(SUMMARIZE_FILE_INSTRUCTIONS)

    diff = f"## Diff\n\n{change.filename}\n\n{change.patch}\n"

    return [
        Message(text="\n".join(parts), cache=True),
        Message(text=diff + build_footer(language)),
    ]


def build_release_notes_prompt(change_summary: str, language: str = "en-US") -> list[Message]:
    """Build the message turning per-file summaries into release notes."""
    text = (
        "Here is the summary of changes you have generated for files:\n\n"
        f"```\n{change_summary}\n```\n\n"
        f"{RELEASE_NOTES_INSTRUCTIONS}"
    )
    return [Message(text=text + build_footer(language), cache=True)]
