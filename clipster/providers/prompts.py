"""System instruction, message composition and response cleanup."""

from typing import List

from ..models.chat import Message

SYSTEM_PROMPT = """\
You are a code assistant.
ONLY respond with the requested code, command, or snippet.
NO explanations.
NO markdown (unless it was specifically asked for).
NO unnecessary quotes around response.
BE CONCISE and immediately usable.

Correct example:
User: "Regex for email"
Response: "[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\\.[a-zA-Z]{2,}"

Incorrect example:
User: "Regex for email"
Response: "```text
^[^\\s@]+@[^\\s@]+\\.[^\\s@]+$
```

Or more comprehensive:

```text
^[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+@[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?(?: ..."
"""

CODE_FENCE = "```"


def build_messages(transcript: str, system_prompt: str = SYSTEM_PROMPT) -> List[Message]:
    """Compose the two-message exchange sent for every utterance."""
    return [
        Message(role="system", content=system_prompt),
        Message(role="user", content=transcript),
    ]


def clean_response(response: str) -> str:
    """Strip a single markdown code-fence wrapper from a model response.

    Purely syntactic: an opening fence line (with any language tag) is
    dropped, then trailing fence markers and whitespace are removed.
    """
    cleaned = response.strip()

    if cleaned.startswith(CODE_FENCE):
        newline_pos = cleaned.find("\n")
        if newline_pos != -1:
            cleaned = cleaned[newline_pos + 1:]

    while cleaned.endswith(CODE_FENCE):
        cleaned = cleaned[: -len(CODE_FENCE)]

    return cleaned.strip()


def preview(text: str, limit: int = 100) -> str:
    """First ``limit`` characters of text, with an ellipsis when truncated."""
    if len(text) > limit:
        return f"{text[:limit]}..."
    return text
