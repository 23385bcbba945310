"""Context checks that separate genuine region mentions from look-alikes.

Short region abbreviations collide with gene and protein symbols ("A1" in
``Nr4a1``, "K1" in ``MAP2K1``) and with list markers ("section a1").  The
:class:`ContextValidator` runs an ordered list of :class:`ContextRule` objects
over the text surrounding an alias match.  Each rule returns
:attr:`Verdict.ACCEPT`, :attr:`Verdict.REJECT` or :attr:`Verdict.CONTINUE`; the
first decisive verdict wins and a match that no rule accepts is rejected.

The default rule chain is precision oriented: a missed mention only shrinks
the network, while a false one puts an unsupported region in front of users.

Length and score thresholds are inclusive and named:

* aliases of at most :data:`SHORT_ALIAS_MAX_LENGTH` characters are "short";
* aliases of at least :data:`LONG_ALIAS_MIN_LENGTH` characters are "long";
* a window needs at least :data:`MIN_NEURO_SCORE` vocabulary hits to count
  as neuroanatomical.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import logging
import re
from typing import FrozenSet, Iterable, Optional, Sequence

from ..config import DEFAULT_EXTRACTION_CONFIG, ExtractionConfig


LOGGER = logging.getLogger(__name__)

SHORT_ALIAS_MAX_LENGTH = 2
LONG_ALIAS_MIN_LENGTH = 6
MIN_NEURO_SCORE = 1

NEUROANATOMICAL_TERMS: FrozenSet[str] = frozenset(
    {
        # anatomy
        "cortex", "cortical", "region", "regions", "area", "areas",
        "brain", "cerebral", "neural", "neuronal", "lobe", "lobes",
        "gyrus", "sulcus", "nucleus", "nuclei", "pathway", "pathways",
        "matter", "tissue", "structure", "structures",
        "hippocampus", "hippocampal", "amygdala", "thalamus", "thalamic",
        # function
        "activation", "activity", "activated", "deactivation",
        "connectivity", "connection", "connected", "network", "networks",
        "functional", "processing", "response", "responses",
        "signal", "signaling", "firing", "discharge",
        # synaptic and plasticity
        "synaptic", "synapse", "plasticity", "neuroplasticity",
        "potentiation", "depression", "pruning", "sprouting",
        # imaging
        "volume", "density", "thickness", "fmri", "pet", "mri",
        "imaging", "scan", "voxel", "bold", "hemodynamic",
        # cognitive neuroscience
        "cognitive", "sensory", "motor", "attention", "memory",
        "emotional", "affective", "reward", "learning", "perception",
    }
)

MOLECULAR_TERMS: FrozenSet[str] = frozenset(
    {
        # genes
        "gene", "genes", "genetic", "allele", "alleles", "locus", "loci",
        "expression", "expressed", "transcript", "transcription",
        "mutation", "mutant", "polymorphism", "variant", "variants",
        "promoter", "enhancer", "coding", "encode", "encodes",
        # proteins
        "protein", "proteins", "receptor", "receptors", "kinase",
        "enzyme", "enzymes", "antibody", "binding", "mrna",
        "peptide", "ligand", "substrate", "catalytic",
        # assays
        "pcr", "western", "blot", "immunohistochemistry",
        "sequencing", "genotype", "phenotype", "knockout",
    }
)

GENE_SYMBOL_PATTERN = re.compile(
    r"\b[A-Z][a-z]{2,}[0-9]+[a-z]+[0-9]*\b"  # Slc6a4, Nr4a1
    r"|\b[A-Z][a-z][0-9]+[a-z]+[0-9]*\b"  # Nr4a1 with a two-letter stem
    r"|\b[A-Z]{3,}[0-9]+[A-Za-z]*[0-9]*\b"  # MAP2K1, HTR2A
    r"|\([A-Z][a-z]+[0-9]+[a-z]*\)"  # (Nr4a1)
    r"|\b[A-Z][a-z]{2,}[0-9]+\b"  # Syn1, Bdnf2
)


def _vocabulary_pattern(terms: Iterable[str]) -> re.Pattern[str]:
    alternation = "|".join(re.escape(term) for term in sorted(terms, key=len, reverse=True))
    return re.compile(rf"\b(?:{alternation})\b")


_NEURO_PATTERN = _vocabulary_pattern(NEUROANATOMICAL_TERMS)
_MOLECULAR_PATTERN = _vocabulary_pattern(MOLECULAR_TERMS)


class Verdict(str, Enum):
    ACCEPT = "accept"
    REJECT = "reject"
    CONTINUE = "continue"


@dataclass(frozen=True)
class MatchContext:
    """Text surrounding one alias match, with its vocabulary hits."""

    full_text: str
    position: int
    alias: str
    window: str
    local_window: str
    neuro_terms: FrozenSet[str]
    molecular_terms: FrozenSet[str]

    @property
    def alias_length(self) -> int:
        return len(self.alias)

    @property
    def is_short(self) -> bool:
        return self.alias_length <= SHORT_ALIAS_MAX_LENGTH

    @property
    def neuro_score(self) -> int:
        return len(self.neuro_terms)

    @property
    def molecular_score(self) -> int:
        return len(self.molecular_terms)

    @classmethod
    def build(
        cls,
        full_text: str,
        position: int,
        alias: str,
        *,
        context_window: int,
        gene_window: int,
    ) -> "MatchContext":
        end = position + len(alias)
        window = full_text[max(0, position - context_window) : min(len(full_text), end + context_window)]
        local_window = full_text[max(0, position - gene_window) : min(len(full_text), end + gene_window)]
        lowered = window.lower()
        return cls(
            full_text=full_text,
            position=position,
            alias=alias,
            window=window,
            local_window=local_window,
            neuro_terms=frozenset(_NEURO_PATTERN.findall(lowered)),
            molecular_terms=frozenset(_MOLECULAR_PATTERN.findall(lowered)),
        )


class ContextRule:
    """Single step of the validation chain."""

    name = "rule"

    def evaluate(self, context: MatchContext) -> Verdict:  # pragma: no cover - interface
        raise NotImplementedError


class GenePatternRule(ContextRule):
    """Reject matches sitting next to a gene or protein symbol."""

    name = "gene_pattern"

    def evaluate(self, context: MatchContext) -> Verdict:
        match = GENE_SYMBOL_PATTERN.search(context.local_window)
        if match is not None:
            LOGGER.debug("Rejected %r near gene-like token %r", context.alias, match.group(0))
            return Verdict.REJECT
        return Verdict.CONTINUE


class EmbeddedTokenRule(ContextRule):
    """Reject short aliases glued to a longer alphanumeric identifier."""

    name = "embedded_token"

    def evaluate(self, context: MatchContext) -> Verdict:
        if not context.is_short:
            return Verdict.CONTINUE
        text = context.full_text
        before = text[context.position - 1] if context.position > 0 else " "
        end = context.position + context.alias_length
        after = text[end] if end < len(text) else " "
        if before.isalnum() or after.isalnum():
            LOGGER.debug("Rejected %r embedded in a longer token", context.alias)
            return Verdict.REJECT
        return Verdict.CONTINUE


class ShortAliasContextRule(ContextRule):
    """Short aliases need neuroanatomical vocabulary nearby."""

    name = "short_alias_context"

    def evaluate(self, context: MatchContext) -> Verdict:
        if context.is_short and context.neuro_score < MIN_NEURO_SCORE:
            LOGGER.debug("Rejected short alias %r without neuroanatomical context", context.alias)
            return Verdict.REJECT
        return Verdict.CONTINUE


class ContextScoreRule(ContextRule):
    """Weigh neuroanatomical against molecular-biology vocabulary."""

    name = "context_score"

    def evaluate(self, context: MatchContext) -> Verdict:
        neuro, molecular = context.neuro_score, context.molecular_score
        if molecular > neuro:
            LOGGER.debug("Rejected %r: molecular context dominates (neuro=%d, molecular=%d)", context.alias, neuro, molecular)
            return Verdict.REJECT
        if neuro >= MIN_NEURO_SCORE:
            LOGGER.debug("Accepted %r (neuro=%d, molecular=%d)", context.alias, neuro, molecular)
            return Verdict.ACCEPT
        if context.alias_length >= LONG_ALIAS_MIN_LENGTH:
            LOGGER.debug("Accepted long alias %r without supporting context", context.alias)
            return Verdict.ACCEPT
        LOGGER.debug("Rejected %r: ambiguous context", context.alias)
        return Verdict.REJECT


DEFAULT_RULES: Sequence[ContextRule] = (
    GenePatternRule(),
    EmbeddedTokenRule(),
    ShortAliasContextRule(),
    ContextScoreRule(),
)


@dataclass(frozen=True)
class ValidationOutcome:
    """Verdict for one match and the rule that produced it."""

    accepted: bool
    rule: str
    neuro_score: int
    molecular_score: int


class ContextValidator:
    """Run the rule chain over an alias match."""

    def __init__(
        self,
        rules: Sequence[ContextRule] | None = None,
        *,
        config: ExtractionConfig | None = None,
    ) -> None:
        self.rules: Sequence[ContextRule] = tuple(rules) if rules is not None else DEFAULT_RULES
        self.config = config or DEFAULT_EXTRACTION_CONFIG

    def evaluate(
        self,
        full_text: str,
        match_position: int,
        matched_alias: str,
        *,
        context_window: Optional[int] = None,
    ) -> ValidationOutcome:
        context = MatchContext.build(
            full_text,
            match_position,
            matched_alias,
            context_window=self.config.context_window if context_window is None else context_window,
            gene_window=self.config.gene_window,
        )
        for rule in self.rules:
            verdict = rule.evaluate(context)
            if verdict is Verdict.CONTINUE:
                continue
            return ValidationOutcome(
                accepted=verdict is Verdict.ACCEPT,
                rule=rule.name,
                neuro_score=context.neuro_score,
                molecular_score=context.molecular_score,
            )
        return ValidationOutcome(
            accepted=False,
            rule="exhausted",
            neuro_score=context.neuro_score,
            molecular_score=context.molecular_score,
        )

    def is_valid(self, full_text: str, match_position: int, matched_alias: str) -> bool:
        """Return ``True`` when the match reads as a neuroanatomical reference."""

        return self.evaluate(full_text, match_position, matched_alias).accepted


__all__ = [
    "ContextRule",
    "ContextScoreRule",
    "ContextValidator",
    "DEFAULT_RULES",
    "EmbeddedTokenRule",
    "GENE_SYMBOL_PATTERN",
    "GenePatternRule",
    "LONG_ALIAS_MIN_LENGTH",
    "MIN_NEURO_SCORE",
    "MOLECULAR_TERMS",
    "MatchContext",
    "NEUROANATOMICAL_TERMS",
    "SHORT_ALIAS_MAX_LENGTH",
    "ShortAliasContextRule",
    "ValidationOutcome",
    "Verdict",
]
