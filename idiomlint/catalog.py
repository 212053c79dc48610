"""Rule catalog: the ordered registry of rules and their detectors."""

from __future__ import annotations

import functools
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

import structlog

from .config import EngineConfig
from .errors import CatalogFrozenError, DuplicateRuleError
from .rules import Detector, Rule
from .rules.aliases import TypedefDetector, UnscopedEnumDetector
from .rules.arrays import RawArrayDetector
from .rules.casts import CStyleCastDetector
from .rules.constructors import ImplicitConversionDetector
from .rules.containers import SizeComparisonDetector
from .rules.control_flow import ElseIfChainDetector
from .rules.increments import PostIncrementDetector
from .rules.indexing import SignedIndexDetector
from .rules.initialization import ConstLocalDetector, NarrowingInitDetector
from .rules.loops import IterationByValueDetector
from .rules.macros import MacroConstantDetector
from .rules.memory import RawOwnershipDetector
from .rules.namespaces import UsingNamespaceDetector
from .rules.parameters import ByValueParameterDetector
from .rules.pointers import NullArgumentDetector
from .rules.streams import FlushingNewlineDetector
from .syntax import NodeKind

logger = structlog.get_logger()

Entry = Tuple[Rule, Detector]
DispatchTable = Mapping[NodeKind, Tuple[Entry, ...]]


class RuleCatalog:
    """Ordered registry mapping rule ids to detectors.

    Registration happens once at startup; ``freeze`` ends it. A frozen
    catalog is only ever read and can be shared by concurrent analysis runs.
    """

    def __init__(self) -> None:
        self._entries: List[Entry] = []
        self._by_id: Dict[str, Entry] = {}
        self._dispatch: Optional[Dict[NodeKind, Tuple[Entry, ...]]] = None

    def register(self, rule: Rule, detector: Detector) -> None:
        if self._dispatch is not None:
            raise CatalogFrozenError(f"Cannot register {rule.id}: catalog is frozen")
        if rule.id in self._by_id:
            raise DuplicateRuleError(rule.id)
        entry = (rule, detector)
        self._entries.append(entry)
        self._by_id[rule.id] = entry

    def freeze(self) -> "RuleCatalog":
        if self._dispatch is None:
            self._dispatch = self._build_dispatch(self._entries)
        return self

    @property
    def frozen(self) -> bool:
        return self._dispatch is not None

    def all(self) -> Tuple[Entry, ...]:
        """Entries in registration order."""

        return tuple(self._entries)

    def get(self, rule_id: str) -> Entry:
        return self._by_id[rule_id]

    def ids(self) -> Tuple[str, ...]:
        return tuple(rule.id for rule, _ in self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, rule_id: object) -> bool:
        return rule_id in self._by_id

    def __iter__(self) -> Iterator[Entry]:
        return iter(self.all())

    def dispatch_table(self, excluded: Iterable[str] = ()) -> DispatchTable:
        """Map each node kind to the interested entries, in catalog order."""

        full = self._dispatch if self._dispatch is not None else self._build_dispatch(self._entries)
        skipped = frozenset(excluded)
        if not skipped:
            return full
        table: Dict[NodeKind, Tuple[Entry, ...]] = {}
        for kind, entries in full.items():
            kept = tuple(entry for entry in entries if entry[0].id not in skipped)
            if kept:
                table[kind] = kept
        return table

    def describe(self) -> List[Dict[str, object]]:
        """Rule metadata for documentation and enable/disable UIs."""

        return [rule.to_dict() for rule, _ in self._entries]

    @staticmethod
    def _build_dispatch(entries: Iterable[Entry]) -> Dict[NodeKind, Tuple[Entry, ...]]:
        table: Dict[NodeKind, List[Entry]] = {}
        for rule, detector in entries:
            for kind in sorted(detector.interested_in(), key=lambda item: item.value):
                table.setdefault(kind, []).append((rule, detector))
        return {kind: tuple(bucket) for kind, bucket in table.items()}


def load_detectors(config: EngineConfig) -> List[Detector]:
    return [
        UsingNamespaceDetector(),
        FlushingNewlineDetector(),
        ElseIfChainDetector(min_branches=config.min_else_if_branches),
        PostIncrementDetector(),
        RawArrayDetector(),
        MacroConstantDetector(),
        IterationByValueDetector(size_threshold=config.trivial_size_threshold),
        SignedIndexDetector(),
        NullArgumentDetector(),
        NarrowingInitDetector(),
        ConstLocalDetector(),
        ByValueParameterDetector(size_threshold=config.trivial_size_threshold),
        CStyleCastDetector(),
        RawOwnershipDetector(),
        TypedefDetector(),
        UnscopedEnumDetector(),
        SizeComparisonDetector(),
        ImplicitConversionDetector(),
    ]


def build_catalog(config: Optional[EngineConfig] = None) -> RuleCatalog:
    """Build and freeze the catalog of all eighteen rules."""

    catalog = RuleCatalog()
    for detector in load_detectors(config or EngineConfig()):
        catalog.register(detector.rule, detector)
    catalog.freeze()
    logger.debug("Rule catalog built", rules=len(catalog))
    return catalog


@functools.lru_cache(maxsize=None)
def default_catalog() -> RuleCatalog:
    """Process-wide catalog built with default settings."""

    return build_catalog(EngineConfig())
