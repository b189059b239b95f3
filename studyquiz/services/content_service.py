"""
Content Service
Loads quiz items from a folder of Markdown study notes
FILE: studyquiz/services/content_service.py
"""
import logging
from pathlib import Path
from typing import Dict, List, Optional, Set, Tuple

from studyquiz.models.quiz import DocumentError, QuizItem, Topic, TopicSummary
from studyquiz.utils.quiz_parser import InvalidItem, ParseError, parse_document

logger = logging.getLogger(__name__)


# ==================== CUSTOM EXCEPTIONS ====================

class ContentError(Exception):
    """Base exception for content loading errors"""
    pass


class NotesDirectoryError(ContentError):
    """Raised when the notes directory does not exist"""
    pass


class UnknownTopicError(ContentError):
    """Raised when a topic name is not in the catalog"""
    pass


# ==================== CATALOG ====================

class ContentCatalog:
    """
    Read-only set of parsed quiz items plus the documents that failed

    Built once by load_notes(); sessions only ever read from it.
    """

    def __init__(
        self,
        items: List[QuizItem],
        topic_names: List[str],
        errors: List[DocumentError]
    ):
        self._items = tuple(items)
        self._topic_names = tuple(topic_names)
        self._errors = tuple(errors)

    @property
    def items(self) -> List[QuizItem]:
        return list(self._items)

    @property
    def errors(self) -> List[DocumentError]:
        return list(self._errors)

    @property
    def topic_names(self) -> List[str]:
        return list(self._topic_names)

    def topics(self) -> Dict[str, Topic]:
        """Group items by topic; topics without quiz items are included"""
        grouped = {name: Topic(name=name) for name in self._topic_names}
        for item in self._items:
            grouped.setdefault(item.topic, Topic(name=item.topic)).items.append(item)
        return grouped

    def items_for(self, topic: Optional[str] = None) -> List[QuizItem]:
        """
        Items of one topic, or every item when topic is None

        Raises:
            UnknownTopicError: If the topic is not in the catalog
        """
        if topic is None:
            return self.items

        if topic not in self._topic_names and not any(i.topic == topic for i in self._items):
            raise UnknownTopicError(
                f"Unknown topic '{topic}'. Available: {', '.join(self._topic_names) or 'none'}"
            )
        return [item for item in self._items if item.topic == topic]

    def summaries(self) -> List[TopicSummary]:
        return [
            TopicSummary(name=name, itemCount=len(topic.items))
            for name, topic in self.topics().items()
        ]


# ==================== LOADING ====================

def _topic_and_source(path: Path, notes_dir: Path) -> Tuple[str, str]:
    """
    Map a document path to (topic, source)

    notes/state/locking.md -> ("state", "locking")
    notes/intro.md         -> ("intro", "intro")
    """
    relative = path.relative_to(notes_dir)
    if len(relative.parts) == 1:
        return relative.stem, relative.stem

    topic = relative.parts[0]
    source = Path(*relative.parts[1:]).with_suffix("").as_posix()
    return topic, source


def discover_topics(notes_dir: Path, pattern: str = "*.md") -> Set[str]:
    """Topic names are the first-level folders plus documents at the root"""
    topics = {p.name for p in notes_dir.iterdir() if p.is_dir() and not p.name.startswith(".")}
    topics.update(p.stem for p in notes_dir.glob(pattern) if p.is_file())
    return topics


def load_document(
    path: Path,
    notes_dir: Path,
    known_topics: Optional[Set[str]] = None
) -> List[QuizItem]:
    """
    Read and parse one document

    Raises:
        ParseError: If any quiz block in the document is invalid
        OSError / UnicodeDecodeError: If the file cannot be read
    """
    topic, source = _topic_and_source(path, notes_dir)
    text = path.read_text(encoding="utf-8")
    return parse_document(text, topic=topic, source=source, known_topics=known_topics)


def load_notes(notes_dir, pattern: str = "*.md") -> ContentCatalog:
    """
    Load every Markdown document under notes_dir

    A failing document is logged and recorded; the others still load.

    Args:
        notes_dir: Root folder of the notes (one sub-folder per topic)
        pattern: File name pattern of documents

    Returns:
        ContentCatalog with the parsed items and per-document errors

    Raises:
        NotesDirectoryError: If notes_dir is not a directory
    """
    notes_dir = Path(notes_dir)
    if not notes_dir.is_dir():
        raise NotesDirectoryError(f"Notes directory not found: {notes_dir}")

    known_topics = discover_topics(notes_dir, pattern)
    items: List[QuizItem] = []
    errors: List[DocumentError] = []
    seen_ids: Set[str] = set()

    paths = sorted(
        p for p in notes_dir.rglob(pattern)
        if p.is_file() and not any(part.startswith(".") for part in p.relative_to(notes_dir).parts)
    )
    logger.info(f"📚 Loading {len(paths)} documents from {notes_dir}")

    for path in paths:
        relative = path.relative_to(notes_dir).as_posix()

        try:
            doc_items = load_document(path, notes_dir, known_topics)

            duplicates = [item for item in doc_items if item.id in seen_ids]
            if duplicates:
                raise InvalidItem(f"duplicate item id '{duplicates[0].id}'", duplicates[0].line)

        except ParseError as e:
            logger.error(f"❌ {relative}: {e}")
            errors.append(
                DocumentError(path=relative, kind=e.kind, message=e.message, line=e.line)
            )
            continue

        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"❌ Failed to read {relative}: {e}")
            errors.append(DocumentError(path=relative, kind="ReadError", message=str(e)))
            continue

        seen_ids.update(item.id for item in doc_items)
        items.extend(doc_items)
        if doc_items:
            logger.debug(f"✓ {relative}: {len(doc_items)} quiz items")

    logger.info(
        f"✅ Loaded {len(items)} quiz items in {len(known_topics)} topics "
        f"({len(errors)} documents with errors)"
    )

    return ContentCatalog(items=items, topic_names=sorted(known_topics), errors=errors)
