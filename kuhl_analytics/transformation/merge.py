"""
Reconciliation / Merge Engine

Plans how an incoming batch of records replaces or extends what is already
stored. Planning is pure: it never touches the database. The import service
applies the plan inside a single transaction.

Rules:
- Records in seasons the import does not cover are never deleted.
- Replace mode deletes everything stored for the covered seasons and inserts
  the whole incoming batch.
- Costs are split by source. A landed cost import clears all costs of its
  seasons; a standard cost import clears only standard costs and never
  overrides a landed cost for the same style and season.
- Inventory has no seasons; replace mode clears it completely.
- Append mode drops incoming keyed records (products, pricing, costs) whose
  natural key is already stored. The one delete it makes is a stored standard
  cost superseded by an incoming landed cost for the same style and season.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set, Tuple

import structlog

from kuhl_analytics.ingestion.records import CostSource, RecordType

logger = structlog.get_logger(__name__)

KEYED_TYPES = frozenset({RecordType.PRODUCTS, RecordType.PRICING, RecordType.COSTS})


@dataclass(frozen=True)
class DeleteScope:
    """
    Filter describing stored rows to delete.

    ``everything`` ignores seasons; otherwise rows whose season is in
    ``seasons`` are deleted, narrowed to ``style_numbers`` when given and,
    for costs, to ``cost_source`` when set.
    """
    seasons: Tuple[str, ...] = ()
    cost_source: Optional[CostSource] = None
    everything: bool = False
    style_numbers: Tuple[str, ...] = ()

    def matches(self, record: Any) -> bool:
        if self.everything:
            return True
        if record.season not in self.seasons:
            return False
        if self.style_numbers and record.style_number not in self.style_numbers:
            return False
        return self.cost_source is None or record.cost_source == self.cost_source


@dataclass
class MergePlan:
    """Keep/insert/delete plan for one import"""
    record_type: RecordType
    covered_seasons: Tuple[str, ...]
    to_keep: List[Any] = field(default_factory=list)
    to_insert: List[Any] = field(default_factory=list)
    to_delete: List[Any] = field(default_factory=list)
    dropped: List[Any] = field(default_factory=list)
    scopes: List[DeleteScope] = field(default_factory=list)

    @property
    def result(self) -> List[Any]:
        """Stored state after the plan is applied."""
        return self.to_keep + self.to_insert


def requires_existing(record_type: RecordType, replace_existing: bool) -> bool:
    """Whether planning needs the stored records of the covered seasons."""
    if record_type == RecordType.COSTS:
        return True
    return not replace_existing and record_type in KEYED_TYPES


def covered_seasons_of(records: Iterable[Any]) -> Tuple[str, ...]:
    """Distinct seasons of a batch, in first-seen order."""
    seen: Dict[str, None] = {}
    for record in records:
        seen.setdefault(record.season, None)
    return tuple(seen)


def _cost_scopes(
    incoming: Sequence[Any],
    covered: Tuple[str, ...],
    cost_source: Optional[CostSource],
) -> List[DeleteScope]:
    """One scope for seasons getting landed cost, one for standard-only seasons."""
    if cost_source is not None:
        source_by_season = {season: cost_source for season in covered}
    else:
        source_by_season = {}
        for record in incoming:
            if record.season not in covered:
                continue
            if record.cost_source == CostSource.LANDED_COST:
                source_by_season[record.season] = CostSource.LANDED_COST
            else:
                source_by_season.setdefault(record.season, CostSource.STANDARD_COST)
        for season in covered:
            source_by_season.setdefault(season, CostSource.LANDED_COST)

    landed = tuple(s for s in covered if source_by_season[s] == CostSource.LANDED_COST)
    standard = tuple(s for s in covered if source_by_season[s] == CostSource.STANDARD_COST)

    scopes = []
    if landed:
        scopes.append(DeleteScope(seasons=landed))
    if standard:
        scopes.append(DeleteScope(seasons=standard, cost_source=CostSource.STANDARD_COST))
    return scopes


def merge_import(
    existing: Sequence[Any],
    incoming: Sequence[Any],
    covered_seasons: Iterable[str],
    record_type: RecordType,
    replace_existing: bool = True,
    cost_source: Optional[CostSource] = None,
) -> MergePlan:
    """
    Plan an import.

    Args:
        existing: Stored records (may be limited to the covered seasons)
        incoming: Parsed records of the import
        covered_seasons: Seasons the import replaces
        record_type: Kind of records in both lists
        replace_existing: Replace covered seasons (True) or append (False)
        cost_source: Source of a cost import; derived per season when None

    Returns:
        MergePlan whose ``result`` is the post-import state of ``existing``
    """
    record_type = RecordType(record_type)
    covered = tuple(dict.fromkeys(s for s in covered_seasons))
    plan = MergePlan(record_type=record_type, covered_seasons=covered)

    if not replace_existing:
        scopes: List[DeleteScope] = []
    elif record_type == RecordType.INVENTORY:
        scopes = [DeleteScope(everything=True)]
    elif record_type == RecordType.COSTS:
        scopes = _cost_scopes(incoming, covered, cost_source)
    else:
        scopes = [DeleteScope(seasons=covered)] if covered else []
    plan.scopes = scopes

    for record in existing:
        if any(scope.matches(record) for scope in scopes):
            plan.to_delete.append(record)
        else:
            plan.to_keep.append(record)

    if record_type == RecordType.COSTS and not replace_existing:
        _append_costs(plan, incoming)
        _log_plan(plan)
        return plan

    blocked: Set[Tuple] = set()
    if not replace_existing and record_type in KEYED_TYPES:
        blocked = {record.key for record in plan.to_keep}
    elif record_type == RecordType.COSTS:
        # Landed cost wins over standard cost for the same style and season
        blocked = {r.key for r in plan.to_keep if r.cost_source == CostSource.LANDED_COST}
        blocked |= {r.key for r in incoming if r.cost_source == CostSource.LANDED_COST}

    for record in incoming:
        if record.key in blocked and not (
            record_type == RecordType.COSTS and record.cost_source == CostSource.LANDED_COST
        ):
            plan.dropped.append(record)
        else:
            plan.to_insert.append(record)

    _log_plan(plan)
    return plan


def _append_costs(plan: MergePlan, incoming: Sequence[Any]) -> None:
    """
    Append costs without letting a standard cost shadow a landed one.

    A stored key blocks an incoming row, except that an incoming landed cost
    replaces a stored standard cost for the same style and season.
    """
    stored_landed = {r.key for r in plan.to_keep if r.cost_source == CostSource.LANDED_COST}
    stored = {r.key for r in plan.to_keep}
    new_landed = {
        r.key for r in incoming
        if r.cost_source == CostSource.LANDED_COST and r.key not in stored_landed
    }

    for record in incoming:
        if record.cost_source == CostSource.LANDED_COST:
            blocked = record.key in stored_landed
        else:
            blocked = record.key in stored or record.key in new_landed
        (plan.dropped if blocked else plan.to_insert).append(record)

    styles_by_season: Dict[str, Set[str]] = {}
    kept = []
    for record in plan.to_keep:
        if record.cost_source == CostSource.STANDARD_COST and record.key in new_landed:
            plan.to_delete.append(record)
            styles_by_season.setdefault(record.season, set()).add(record.style_number)
        else:
            kept.append(record)
    plan.to_keep = kept

    plan.scopes = [
        DeleteScope(
            seasons=(season,),
            cost_source=CostSource.STANDARD_COST,
            style_numbers=tuple(sorted(styles)),
        )
        for season, styles in styles_by_season.items()
    ]


def _log_plan(plan: MergePlan) -> None:
    logger.debug(
        "Merge planned",
        record_type=plan.record_type.value,
        seasons=list(plan.covered_seasons),
        keep=len(plan.to_keep),
        insert=len(plan.to_insert),
        delete=len(plan.to_delete),
        dropped=len(plan.dropped),
    )
