"""Alias-based region mention extraction over research excerpts.

``MentionExtractor.extract`` walks every document, looks up each region alias
with whole-word matching and asks the :class:`ContextValidator` whether the
occurrence is a genuine neuroanatomical reference.  Accepted occurrences
confirm the region and contribute one :class:`MentionEvidence` per
``(region, document)`` pair, carrying the sentence the alias was found in.

Extraction is deterministic: region codes are scanned in sorted order and a
region's aliases longest first, so the output never depends on the ordering
of the alias index handed in.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
import logging
import re
from typing import Callable, Dict, FrozenSet, Iterator, List, Mapping, Optional, Sequence, Tuple, Union

from ..config import DEFAULT_EXTRACTION_CONFIG, ExtractionConfig
from ..telemetry import PIPELINE_METRICS, PipelineMetrics
from .context_validator import ContextValidator
from .models import ContextCategory, Document, MentionEvidence


LOGGER = logging.getLogger(__name__)

SENTENCE_BOUNDARIES = ".!?\n"

DocumentLike = Union[Document, Mapping[str, object]]

_CATEGORY_PATTERNS: Tuple[Tuple[ContextCategory, re.Pattern[str]], ...] = (
    (ContextCategory.CONNECTIVITY, re.compile(r"\b(?:connect\w*|networks?|coupling)\b")),
    (ContextCategory.ACTIVITY, re.compile(r"\bactiv\w*")),
    (ContextCategory.NEUROPLASTICITY, re.compile(r"\b(?:neuro)?plasticity\b|\bsynap\w*")),
    (ContextCategory.STRUCTURE, re.compile(r"\b(?:volumes?|densit\w*|structur\w*)")),
    (ContextCategory.FUNCTION, re.compile(r"\bfunction\w*")),
)


@lru_cache(maxsize=1024)
def alias_pattern(alias: str) -> re.Pattern[str]:
    """Return a case-insensitive whole-word pattern for ``alias``."""

    return re.compile(rf"(?<!\w){re.escape(alias)}(?!\w)", re.IGNORECASE)


def categorise_excerpt(excerpt: str) -> ContextCategory:
    """Classify an excerpt by the first topic keyword family it contains."""

    lowered = excerpt.lower()
    for category, pattern in _CATEGORY_PATTERNS:
        if pattern.search(lowered):
            return category
    return ContextCategory.GENERAL


def extract_excerpt(
    text: str,
    start: int,
    end: int,
    *,
    window: int = DEFAULT_EXTRACTION_CONFIG.excerpt_window,
    max_sentence_length: int = DEFAULT_EXTRACTION_CONFIG.max_sentence_length,
) -> str:
    """Return the sentence containing ``text[start:end]``.

    The start and end of the text count as sentence boundaries.  Sentences
    longer than ``max_sentence_length`` fall back to a ``window``-character
    slice on either side of the match, with ``...`` marking the cuts.
    """

    sentence_start = max(text.rfind(mark, 0, start) for mark in SENTENCE_BOUNDARIES) + 1
    ends = [index for index in (text.find(mark, end) for mark in SENTENCE_BOUNDARIES) if index != -1]
    sentence_end = min(ends) + 1 if ends else len(text)
    sentence = text[sentence_start:sentence_end].strip()
    if sentence and len(sentence) <= max_sentence_length:
        return sentence

    left = max(0, start - window)
    right = min(len(text), end + window)
    excerpt = text[left:right].strip()
    if left > 0:
        excerpt = "..." + excerpt
    if right < len(text):
        excerpt = excerpt + "..."
    return excerpt


def _ordered_aliases(aliases: Sequence[str]) -> List[str]:
    cleaned = {alias.strip().lower() for alias in aliases if alias and alias.strip()}
    return sorted(cleaned, key=lambda alias: (-len(alias), alias))


def _coerce_document(item: object, index: int) -> Optional[Document]:
    if isinstance(item, Document):
        return item
    if isinstance(item, Mapping):
        return Document.from_record(item, index=index)
    LOGGER.warning("Skipping document #%d of unsupported type %s", index, type(item).__name__)
    return None


@dataclass(frozen=True)
class ExtractionResult:
    """Confirmed region codes and their evidence.

    Iterating yields ``(codes, evidence)`` so callers can unpack the result
    directly.
    """

    codes: FrozenSet[str]
    evidence: Tuple[MentionEvidence, ...]
    documents_scanned: int = 0
    truncated: bool = False

    def __iter__(self) -> Iterator[object]:
        yield self.codes
        yield self.evidence

    @property
    def is_empty(self) -> bool:
        return not self.codes

    def evidence_for(self, code: str) -> Tuple[MentionEvidence, ...]:
        return tuple(item for item in self.evidence if item.region_code == code)


class MentionExtractor:
    """Find validated region mentions in a batch of documents."""

    def __init__(
        self,
        validator: ContextValidator | None = None,
        *,
        config: ExtractionConfig | None = None,
        metrics: PipelineMetrics | None = None,
    ) -> None:
        self.config = config or DEFAULT_EXTRACTION_CONFIG
        self.validator = validator or ContextValidator(config=self.config)
        self.metrics = metrics or PIPELINE_METRICS

    def extract(
        self,
        documents: Sequence[DocumentLike],
        alias_index: Mapping[str, Sequence[str]],
        *,
        should_stop: Optional[Callable[[], bool]] = None,
    ) -> ExtractionResult:
        """Scan ``documents`` for the aliases in ``alias_index``.

        ``should_stop`` is polled before each document; once it returns
        ``True`` the mentions gathered so far are returned with
        ``truncated=True``.
        """

        index: Dict[str, List[str]] = {
            code: _ordered_aliases(aliases) for code, aliases in alias_index.items()
        }
        codes = sorted(code for code, aliases in index.items() if aliases)
        confirmed: set[str] = set()
        evidence: List[MentionEvidence] = []
        scanned = 0
        truncated = False

        for position, item in enumerate(documents):
            if should_stop is not None and should_stop():
                LOGGER.info("Extraction stopped after %d of %d documents", scanned, len(documents))
                truncated = True
                break
            document = _coerce_document(item, position)
            scanned += 1
            if document is None:
                continue
            text = document.text
            if not text:
                continue
            for code in codes:
                mention = self._first_mention(document, text, code, index[code])
                if mention is None:
                    continue
                confirmed.add(code)
                evidence.append(mention)

        LOGGER.info(
            "Extracted %d region(s) with %d mention(s) from %d document(s)",
            len(confirmed),
            len(evidence),
            scanned,
        )
        return ExtractionResult(
            codes=frozenset(confirmed),
            evidence=tuple(evidence),
            documents_scanned=scanned,
            truncated=truncated,
        )

    def _first_mention(
        self,
        document: Document,
        text: str,
        code: str,
        aliases: Sequence[str],
    ) -> Optional[MentionEvidence]:
        for alias in aliases:
            for match in alias_pattern(alias).finditer(text):
                outcome = self.validator.evaluate(text, match.start(), match.group(0))
                if not outcome.accepted:
                    self.metrics.record_rejected(outcome.rule)
                    continue
                self.metrics.record_accepted(code)
                excerpt = extract_excerpt(
                    text,
                    match.start(),
                    match.end(),
                    window=self.config.excerpt_window,
                    max_sentence_length=self.config.max_sentence_length,
                )
                LOGGER.debug("Confirmed %s in %s via %r", code, document.identifier, alias)
                return MentionEvidence(
                    region_code=code,
                    source_document_id=document.identifier,
                    matched_alias=alias,
                    excerpt=excerpt,
                    context_category=categorise_excerpt(excerpt),
                )
        return None


__all__ = [
    "ExtractionResult",
    "MentionExtractor",
    "SENTENCE_BOUNDARIES",
    "alias_pattern",
    "categorise_excerpt",
    "extract_excerpt",
]
