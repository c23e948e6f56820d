"""
Context assembly and prompt construction for a single chat turn.

Everything here is pure string work: no database, network or clock access,
so the same inputs always produce the same prompt.
"""

from dataclasses import dataclass, field
from typing import Iterable, List, NamedTuple, Optional

DEFAULT_SYSTEM_INSTRUCTION = "You are a helpful assistant."
NO_CONTEXT_SENTINEL = "No document context available."
NOT_AVAILABLE_ANSWER = "The answer is not available in the provided documents."
DEFAULT_MAX_CONTEXT_CHARS = 1_000_000

DOCUMENT_SEPARATOR = "\n\n"
START_MARKER = "--- START OF FILE: {filename} ---"
END_MARKER = "--- END OF FILE: {filename} ---"

FORMATTING_DIRECTIVES = (
    "Use the following extracted text from the uploaded PDF documents to answer the user's question.",
    f'If the answer is not in the text, strictly say "{NOT_AVAILABLE_ANSWER}"',
    "Each document is enclosed between '--- START OF FILE: <name> ---' and "
    "'--- END OF FILE: <name> ---' markers. When asked where an answer comes from, cite that file name.",
    "Use Markdown for formatting.",
    "When the answer compares items or lists structured data, present it as a Markdown table "
    "with a header row and a separator row (| --- |), one record per row, and no merged cells.",
    "Answer in the same language as the user's question. For right-to-left languages such as Arabic, "
    "keep numbers, dates and file names exactly as they appear in the text.",
)

PROMPT_TEMPLATE = """{system_instruction}

Instructions:
{directives}

Extracted Text:
{context}

User Question:
{question}"""


class ContextDocument(NamedTuple):
    """Minimal document shape accepted by the assembler."""
    filename: str
    extracted_text: str


@dataclass(frozen=True)
class ContextResult:
    """Assembled context plus what actually made it into it."""
    text: str
    sources: List[str] = field(default_factory=list)
    truncated: bool = False


def render_document_block(filename: str, text: str) -> str:
    """Wrap one document's text in filename-carrying start/end markers."""
    return (
        f"{START_MARKER.format(filename=filename)}\n"
        f"{text}\n"
        f"{END_MARKER.format(filename=filename)}"
    )


def resolve_system_instruction(bot) -> str:
    """Return the bot's instruction, or the default when it is empty or missing."""
    instruction = getattr(bot, "system_instruction", None)
    if instruction is None or not instruction.strip():
        return DEFAULT_SYSTEM_INSTRUCTION
    return instruction


def assemble_context(documents: Iterable, max_context_chars: int = DEFAULT_MAX_CONTEXT_CHARS) -> ContextResult:
    """
    Concatenate document blocks and cut the result to the character budget.

    Args:
        documents: Objects exposing ``filename`` and ``extracted_text``
        max_context_chars: Hard upper bound on the returned text length

    Returns:
        ContextResult whose ``text`` is the sentinel when there are no documents,
        otherwise a plain prefix of the joined blocks.
    """
    blocks = []
    offsets = []
    position = 0
    for document in documents:
        if blocks:
            position += len(DOCUMENT_SEPARATOR)
        block = render_document_block(document.filename, document.extracted_text or "")
        offsets.append((document.filename, position))
        blocks.append(block)
        position += len(block)

    if not blocks:
        return ContextResult(text=NO_CONTEXT_SENTINEL)

    joined = DOCUMENT_SEPARATOR.join(blocks)
    truncated = len(joined) > max_context_chars
    text = joined[:max_context_chars] if truncated else joined

    # A document counts as used when its whole start marker survived the cut
    sources = []
    for filename, start in offsets:
        marker_end = start + len(START_MARKER.format(filename=filename))
        if marker_end <= len(text) and filename not in sources:
            sources.append(filename)

    return ContextResult(text=text, sources=sources, truncated=truncated)


def build_prompt_from_context(system_instruction: str, context: str, user_message: str,
                              directives: Optional[Iterable[str]] = None) -> str:
    """Fill the fixed template: instruction, directives, context, question."""
    directive_lines = directives if directives is not None else FORMATTING_DIRECTIVES
    return PROMPT_TEMPLATE.format(
        system_instruction=system_instruction,
        directives="\n".join(f"- {line}" for line in directive_lines),
        context=context,
        question=user_message,
    )


def build_prompt(bot, documents: Iterable, user_message: str,
                 max_context_chars: int = DEFAULT_MAX_CONTEXT_CHARS) -> str:
    """
    Build the full prompt for one chat turn.

    The user message and document text are inserted as-is; nothing is escaped.

    Args:
        bot: Object exposing ``system_instruction`` (may be empty or None)
        documents: Objects exposing ``filename`` and ``extracted_text``
        user_message: The end user's question
        max_context_chars: Character budget for the context block

    Returns:
        The prompt string to send to the generation service
    """
    context = assemble_context(documents, max_context_chars)
    return build_prompt_from_context(resolve_system_instruction(bot), context.text, user_message)
