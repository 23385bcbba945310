"""Intervention, setting and duration tables used to build perturbation profiles."""

from __future__ import annotations

from dataclasses import dataclass
import logging
import re
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

from ..graph.catalog import ConnectivityCatalog, RegionCatalog
from ..graph.models import split_pair_key
from .assets import load_modifier_tables
from .modulation import PerturbationProfile, canonical_modifiers


LOGGER = logging.getLogger(__name__)

DEFAULT_INTERVENTION = "psilocybin"
DEFAULT_SETTING = "calm_nature"
DEFAULT_DURATION = "medium"


class UnknownProfileError(KeyError):
    """Raised when an intervention, setting or duration tag is not defined."""

    def __init__(self, kind: str, tag: str, available: List[str]) -> None:
        self.kind = kind
        self.tag = tag
        self.available = available
        super().__init__(f"Unknown {kind} {tag!r}; expected one of: {', '.join(available)}")

    def __str__(self) -> str:
        return str(self.args[0])


def normalise_tag(tag: str) -> str:
    """Return ``tag`` in lower snake case (``"Calm-Nature"`` -> ``"calm_nature"``)."""

    return re.sub(r"[\s\-]+", "_", tag.strip()).lower()


@dataclass(frozen=True)
class ModifierTable:
    """Named set of pair-key modifiers."""

    tag: str
    label: str
    modifiers: Mapping[str, float]


def _tables(payload: Mapping[str, Any], section: str) -> Dict[str, ModifierTable]:
    tables: Dict[str, ModifierTable] = {}
    for raw_tag, entry in (payload.get(section) or {}).items():
        tag = normalise_tag(str(raw_tag))
        if isinstance(entry, Mapping) and "modifiers" in entry:
            label = str(entry.get("label") or raw_tag)
            modifiers = entry.get("modifiers") or {}
        else:
            label = str(raw_tag)
            modifiers = entry or {}
        tables[tag] = ModifierTable(tag=tag, label=label, modifiers=canonical_modifiers(modifiers))
    return tables


class ModifierLibrary:
    """Lookup of modifier tables keyed by normalised tag."""

    def __init__(
        self,
        interventions: Mapping[str, ModifierTable],
        settings: Mapping[str, ModifierTable],
        durations: Mapping[str, float],
    ) -> None:
        self.interventions: Mapping[str, ModifierTable] = MappingProxyType(dict(interventions))
        self.settings: Mapping[str, ModifierTable] = MappingProxyType(dict(settings))
        self.durations: Mapping[str, float] = MappingProxyType(
            {normalise_tag(tag): float(scale) for tag, scale in durations.items()}
        )

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "ModifierLibrary":
        return cls(
            interventions=_tables(payload, "interventions"),
            settings=_tables(payload, "settings"),
            durations=payload.get("durations") or {},
        )

    @classmethod
    def load_default(cls, path: str | Path | None = None) -> "ModifierLibrary":
        library = cls.from_mapping(load_modifier_tables(path))
        LOGGER.info(
            "Loaded %d intervention(s), %d setting(s), %d duration(s)",
            len(library.interventions),
            len(library.settings),
            len(library.durations),
        )
        return library

    def intervention(self, tag: str) -> ModifierTable:
        return self._lookup("intervention", self.interventions, tag)

    def setting(self, tag: str) -> ModifierTable:
        return self._lookup("setting", self.settings, tag)

    def duration_scale(self, tag: str) -> float:
        return self._lookup("duration", self.durations, tag)

    def build_profile(
        self,
        intervention: str = DEFAULT_INTERVENTION,
        setting: str = DEFAULT_SETTING,
        duration: str = DEFAULT_DURATION,
    ) -> PerturbationProfile:
        intervention_table = self.intervention(intervention)
        setting_table = self.setting(setting)
        return PerturbationProfile(
            intervention_modifiers=intervention_table.modifiers,
            setting_modifiers=setting_table.modifiers,
            duration_scale=self.duration_scale(duration),
            intervention=intervention_table.tag,
            setting=setting_table.tag,
            duration=normalise_tag(duration),
        )

    def validate_against(
        self,
        regions: RegionCatalog,
        connections: Optional[ConnectivityCatalog] = None,
    ) -> List[str]:
        """Describe modifier keys that can never match a graph edge.

        Keys naming an unknown region code are always reported; when
        ``connections`` is given, keys without a catalog connection are
        reported too.
        """

        problems: List[str] = []
        for section, tables in (("intervention", self.interventions), ("setting", self.settings)):
            for tag in sorted(tables):
                for key in sorted(tables[tag].modifiers):
                    code_a, code_b = split_pair_key(key)
                    missing = [code for code in (code_a, code_b) if code not in regions]
                    if missing:
                        problems.append(f"{section} {tag}: {key} names unknown region(s) {', '.join(missing)}")
                    elif connections is not None and connections.get(code_a, code_b) is None:
                        problems.append(f"{section} {tag}: {key} has no catalog connection")
        for problem in problems:
            LOGGER.debug("Modifier table issue: %s", problem)
        return problems

    def _lookup(self, kind: str, table: Mapping[str, Any], tag: str) -> Any:
        key = normalise_tag(tag)
        try:
            return table[key]
        except KeyError:
            raise UnknownProfileError(kind, tag, sorted(table)) from None

    def tags(self) -> Tuple[List[str], List[str], List[str]]:
        return sorted(self.interventions), sorted(self.settings), sorted(self.durations)


__all__ = [
    "DEFAULT_DURATION",
    "DEFAULT_INTERVENTION",
    "DEFAULT_SETTING",
    "ModifierLibrary",
    "ModifierTable",
    "UnknownProfileError",
    "normalise_tag",
]
