"""
Quiz Parser
Extracts and validates multiple-choice quiz blocks from Markdown study notes
"""
import logging
import re
from typing import List, Optional, Tuple, Iterable, Set

from pydantic import ValidationError as ModelValidationError

from studyquiz.models.quiz import Choice, QuizItem

logger = logging.getLogger(__name__)


class ParseError(Exception):
    """Base exception for quiz parsing errors"""

    def __init__(self, message: str, line: Optional[int] = None):
        self.message = message
        self.line = line
        super().__init__(f"line {line}: {message}" if line else message)

    @property
    def kind(self) -> str:
        return type(self).__name__


class MissingAnswer(ParseError):
    """Raised when a quiz block has no answer marker"""
    pass


class MalformedBlock(ParseError):
    """Raised when collapsible answer markup is nested, stray or unclosed"""
    pass


class InvalidItem(ParseError):
    """Raised when a block parses but does not form a valid quiz item"""
    pass


MIN_CHOICES = 2

# "### Question 3", "## Q1: ..." headings
_HEADING_QUESTION_RE = re.compile(
    r"^\s{0,3}#{1,6}\s+(?:\*\*)?(?:Question|Q)(?![A-Za-z])\s*(?:(\d+)\s*[:.)]?|[:.)]|(?=\s*$))\s*(.*)$",
    re.I
)
# "Q: ...", "Q1. ...", "**Question 3:** ..."
_LINE_QUESTION_RE = re.compile(
    r"^\s*(?:\*\*|__)?(?:Question|Q)(?![A-Za-z])\s*(\d+)?\s*[:.)]\s*(?:\*\*|__)?\s*(.*)$", re.I
)
_HEADING_RE = re.compile(r"^\s{0,3}#{1,6}\s")
_RULE_RE = re.compile(r"^\s{0,3}(?:-{3,}|\*{3,}|_{3,})\s*$")
_FENCE_RE = re.compile(r"^\s*(```|~~~)")

# "A) text", "A. text", "(A) text", "- B) text", "**C.** text"
_OPTION_RE = re.compile(
    r"^\s*(?:[-*+]\s+)?(?:\*\*|__)?\(?([A-H])(?:\)|\.|:)(?:\*\*|__)?\s+(.*\S)\s*$"
)
_INLINE_OPTION_RE = re.compile(r"(?:(?<=\s)|^)\(?([A-H])\)\s")
_INLINE_ANSWER_RE = re.compile(r"\s(?=(?:\*\*)?(?i:answer)(?:\*\*)?\s*:)")

_ANSWER_RE = re.compile(
    r"^\s*(?:[-*+>]\s+)?[^\w\s<(]*(?:__)?\s*(?:correct\s+)?answer\s*(?:\*\*|__)?\s*[:=]\s*(.*)$",
    re.I
)
_ANSWER_VALUE_RE = re.compile(r"^[*_\s]*\(?([A-Za-z])\)?(?![A-Za-z])(?:\*\*|__)?[.):]?(?:\*\*|__)?\s*(.*)$")
_MULTI_ANSWER_RE = re.compile(
    r"^[*_\s]*\(?[A-Za-z]\)?\s*(?:,|&|/|\band\b)\s*\(?[A-Za-z]\)?(?:\*\*|__)?\.?\s*(?:$|[,&/]|\band\b)",
    re.I
)
_EXPLANATION_PREFIX_RE = re.compile(
    r"^\s*(?:\*\*|__)?explanation(?:\*\*|__)?\s*[:\-]\s*(?:\*\*|__)?\s*", re.I
)

_DETAILS_TAG_RE = re.compile(r"<(/?)details\b[^>]*>", re.I)
_SUMMARY_RE = re.compile(r"<summary\b[^>]*>.*?</summary>|</?summary\b[^>]*>", re.I)
_SHOW_ANSWER_RE = re.compile(r"^\W*show\s+answers?\W*$", re.I)
_TOPIC_DIRECTIVE_RE = re.compile(r"<!--\s*topic\s*:\s*(.+?)\s*-->", re.I)


def _match_question_header(text: str) -> Optional[str]:
    """Return the prompt text on a question header line, or None"""
    match = _HEADING_QUESTION_RE.match(text) or _LINE_QUESTION_RE.match(text)
    if not match:
        return None
    rest = match.group(2).strip()
    # "**Q1. What is state?**" keeps the closing bold on the prompt
    if rest.endswith("**") or rest.endswith("__"):
        rest = rest[:-2].rstrip()
    return rest


def _expand_inline(lines: Iterable[str]) -> List[Tuple[int, str]]:
    """
    Number lines and split one-line blocks into one piece per part

    "Q: ... A) x B) y Answer: B" becomes a header, two options and an answer,
    all carrying the original line number. Only lines with a run of at least
    two consecutive option markers starting at A are split.
    """
    numbered = []
    for lineno, text in enumerate(lines, start=1):
        markers = list(_INLINE_OPTION_RE.finditer(text))
        letters = [m.group(1) for m in markers]
        expected = [chr(ord("A") + i) for i in range(len(letters))]

        if len(markers) < 2 or letters != expected:
            numbered.append((lineno, text))
            continue

        cuts = [m.start() for m in markers]
        answer = _INLINE_ANSWER_RE.search(text, markers[-1].end())
        if answer:
            cuts.append(answer.end())

        start = 0
        for cut in cuts:
            piece = text[start:cut].strip()
            if piece:
                numbered.append((lineno, piece))
            start = cut
        numbered.append((lineno, text[start:].strip()))

    return numbered


class _RawBlock:
    """Lines belonging to one question, header included"""

    def __init__(self, line: int, header: str):
        self.line = line
        self.header = header
        self.lines: List[Tuple[int, str]] = []


def _split_blocks(numbered: List[Tuple[int, str]]) -> List[_RawBlock]:
    """
    Group numbered lines into question blocks

    Question headers always open a new block. Other headings and rules close
    the current block unless a collapsible section or code fence is open.
    """
    blocks: List[_RawBlock] = []
    current: Optional[_RawBlock] = None
    in_fence = False
    depth = 0

    for lineno, text in numbered:
        if _FENCE_RE.match(text):
            in_fence = not in_fence
            if current is not None:
                current.lines.append((lineno, text))
            continue

        if in_fence:
            if current is not None:
                current.lines.append((lineno, text))
            continue

        header = _match_question_header(text)
        if header is not None:
            current = _RawBlock(lineno, header)
            blocks.append(current)
            depth = 0
            continue

        if current is None:
            continue

        if depth == 0 and (_HEADING_RE.match(text) or _RULE_RE.match(text)):
            current = None
            continue

        for tag in _DETAILS_TAG_RE.finditer(text):
            depth = max(depth - 1, 0) if tag.group(1) else depth + 1

        current.lines.append((lineno, text))

    return blocks


def _parse_answer_value(value: str, line: int) -> Tuple[str, str]:
    """
    Split the text after "Answer:" into (label, trailing text)

    Raises:
        InvalidItem: For multi-letter answers or unrecognised values
    """
    if _MULTI_ANSWER_RE.match(value):
        raise InvalidItem(f"expected exactly one correct answer, got '{value.strip()}'", line)

    match = _ANSWER_VALUE_RE.match(value)
    if not match:
        raise InvalidItem(f"unrecognised answer value '{value.strip()}'", line)

    tail = match.group(2).strip().strip("*_").strip()
    tail = tail.lstrip(",/&-–— ").strip()
    return match.group(1).upper(), tail


def _join_explanation(lines: List[str]) -> str:
    """Join explanation lines, keeping paragraph breaks"""
    paragraphs = []
    current = []
    for text in lines:
        if text.strip():
            current.append(text.strip())
        elif current:
            paragraphs.append(" ".join(current))
            current = []
    if current:
        paragraphs.append(" ".join(current))
    return "\n\n".join(paragraphs)


def _parse_block(
    block: _RawBlock,
    topic: str,
    source: Optional[str],
    index: int
) -> QuizItem:
    """
    Turn one raw block into a QuizItem

    Raises:
        MalformedBlock: Nested, stray or unclosed collapsible section
        MissingAnswer: No answer marker in the block
        InvalidItem: Fewer than two choices, duplicate labels, bad answer
    """
    prompt_lines = [block.header] if block.header else []
    choices: List[Tuple[str, str, int]] = []
    explanation_lines: List[str] = []
    answer_label: Optional[str] = None
    answer_tail = ""
    answer_line = block.line

    depth = 0
    open_line = None
    details_seen = False
    section_closed = False
    in_fence = False

    for lineno, text in block.lines:
        # Prose after a closed answer section is not part of the question
        if section_closed and answer_label is not None:
            break
        section_closed = False

        if _FENCE_RE.match(text) or in_fence:
            opens_fence = _FENCE_RE.match(text) and not in_fence
            if _FENCE_RE.match(text):
                in_fence = not in_fence
            if answer_label is not None:
                explanation_lines.append(text)
            elif not choices:
                prompt_lines.append(text)
            elif opens_fence:
                logger.debug(
                    f"Ignoring fenced code at line {lineno} between the choices and "
                    f"the answer of question at line {block.line}"
                )
            continue

        for tag in _DETAILS_TAG_RE.finditer(text):
            if tag.group(1):
                if depth == 0:
                    raise MalformedBlock("closing </details> without an opening tag", lineno)
                depth -= 1
                section_closed = depth == 0
            else:
                if depth > 0:
                    raise MalformedBlock("nested collapsible answer section", lineno)
                depth += 1
                open_line = lineno
                details_seen = True

        text = _SUMMARY_RE.sub("", _DETAILS_TAG_RE.sub("", text))
        stripped = text.strip()

        if not stripped:
            if answer_label is not None:
                explanation_lines.append("")
            elif not choices and prompt_lines:
                prompt_lines.append("")
            continue

        if _SHOW_ANSWER_RE.match(stripped):
            continue

        answer_match = _ANSWER_RE.match(stripped)
        if answer_match:
            if answer_label is not None:
                raise InvalidItem("more than one answer marker in block", lineno)
            answer_label, answer_tail = _parse_answer_value(answer_match.group(1), lineno)
            answer_line = lineno
            continue

        if answer_label is not None:
            explanation_lines.append(_EXPLANATION_PREFIX_RE.sub("", stripped))
            continue

        option_match = _OPTION_RE.match(stripped)
        if option_match:
            choices.append((option_match.group(1), option_match.group(2).strip(), lineno))
            continue

        if not choices:
            prompt_lines.append(stripped)
        elif text[:1].isspace():
            label, choice_text, choice_line = choices[-1]
            choices[-1] = (label, f"{choice_text} {stripped}", choice_line)
        else:
            logger.debug(f"Ignoring stray line {lineno} in question at line {block.line}")

    if depth > 0:
        raise MalformedBlock("collapsible answer section is never closed", open_line)

    if answer_label is None:
        where = "collapsible answer section" if details_seen else "block"
        raise MissingAnswer(f"no 'Answer:' marker found in {where}", block.line)

    prompt = "\n".join(prompt_lines).strip()
    if not prompt:
        raise InvalidItem("question has no prompt text", block.line)

    if len(choices) < MIN_CHOICES:
        raise InvalidItem(
            f"expected at least {MIN_CHOICES} choices, got {len(choices)}",
            block.line
        )

    seen = set()
    for label, _, lineno in choices:
        if label in seen:
            raise InvalidItem(f"duplicate choice label '{label}'", lineno)
        seen.add(label)

    if answer_label not in seen:
        raise InvalidItem(
            f"answer '{answer_label}' does not match any choice ({', '.join(sorted(seen))})",
            answer_line
        )

    correct_text = next(text for label, text, _ in choices if label == answer_label)
    if answer_tail and answer_tail.rstrip(".").lower() != correct_text.rstrip(".").lower():
        explanation_lines.insert(0, answer_tail)

    item_id = f"{topic}/{source}#{index}" if source else f"{topic}#{index}"

    try:
        return QuizItem(
            id=item_id,
            topic=topic,
            prompt=prompt,
            choices=[Choice(label=label, text=text) for label, text, _ in choices],
            correct_label=answer_label,
            explanation=_join_explanation(explanation_lines),
            source=source,
            line=block.line
        )
    except ModelValidationError as e:
        raise InvalidItem(str(e), block.line)


def find_topic_directive(text: str) -> Tuple[Optional[str], Optional[int]]:
    """Return the topic named by a <!-- topic: name --> comment and its line"""
    for lineno, line in enumerate(text.splitlines(), start=1):
        match = _TOPIC_DIRECTIVE_RE.search(line)
        if match:
            return match.group(1).strip(), lineno
    return None, None


def parse_document(
    text: str,
    topic: str,
    source: Optional[str] = None,
    known_topics: Optional[Set[str]] = None
) -> List[QuizItem]:
    """
    Parse all quiz blocks in a Markdown document

    Pure transformation: the same text always yields equal item lists.

    Args:
        text: Document text
        topic: Topic the document belongs to (its notes folder)
        source: Document name used in item IDs
        known_topics: When given, the effective topic must be one of these

    Returns:
        Quiz items in document order; empty when the document has no quiz

    Raises:
        MissingAnswer: A block has no answer marker
        MalformedBlock: A block has broken collapsible markup
        InvalidItem: A block is not a valid item, or the topic is undefined

    Example:
        >>> items = parse_document(
        ...     "Q: What does count.index give? A) name B) 0-based index Answer: B",
        ...     topic="meta-arguments"
        ... )
        >>> items[0].correct_label
        'B'
    """
    directive, directive_line = find_topic_directive(text)
    if directive:
        topic = directive

    if known_topics is not None and topic not in known_topics:
        raise InvalidItem(f"undefined topic '{topic}'", directive_line)

    blocks = _split_blocks(_expand_inline(text.splitlines()))
    logger.debug(f"Found {len(blocks)} quiz blocks in {source or topic}")

    items = [
        _parse_block(block, topic, source, index)
        for index, block in enumerate(blocks, start=1)
    ]

    return items


def safe_parse_document(
    text: str,
    topic: str,
    source: Optional[str] = None,
    known_topics: Optional[Set[str]] = None
) -> Tuple[List[QuizItem], Optional[ParseError]]:
    """
    Parse a document with error capture instead of raising

    Returns:
        Tuple of (items, error)
        - On success: (items, None)
        - On failure: ([], error)
    """
    try:
        return parse_document(text, topic, source, known_topics), None
    except ParseError as e:
        logger.error(f"❌ Quiz parse error in {source or topic}: {e}")
        return [], e
