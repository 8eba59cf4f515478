"""Organization-level effectiveness analytics."""
from collections import OrderedDict
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence

from mindcheck.shared.models import InterventionType, TriggerCategory
from .config import EffectivenessConfig


@dataclass(frozen=True)
class TriggerUsageRow:
    """A check-in whose shown intervention was rated by the subject."""
    trigger_category: TriggerCategory
    intervention_type: InterventionType
    helpful: bool


@dataclass(frozen=True)
class TypeEffectiveness:
    intervention_type: InterventionType
    usage_count: int
    effectiveness: int    # percent, rounded

    def to_dict(self) -> dict:
        return {
            "type": self.intervention_type.value,
            "usage_count": self.usage_count,
            "effectiveness": self.effectiveness,
        }


def effectiveness_by_trigger(
    usage_rows: Iterable[TriggerUsageRow],
    min_sample: Optional[int] = None,
) -> Dict[TriggerCategory, List[TypeEffectiveness]]:
    """Which intervention types work for which triggers.

    Groups with fewer than `min_sample` rated uses are left out. Within a
    trigger, types are sorted by effectiveness descending.
    """
    if min_sample is None:
        min_sample = EffectivenessConfig().min_sample_size

    counts: "OrderedDict[tuple, List[int]]" = OrderedDict()
    for row in usage_rows:
        key = (row.trigger_category, row.intervention_type)
        bucket = counts.setdefault(key, [0, 0])
        bucket[0] += 1
        if row.helpful:
            bucket[1] += 1

    analysis: Dict[TriggerCategory, List[TypeEffectiveness]] = {}
    for (trigger, intervention_type), (used, helpful) in counts.items():
        if used < min_sample:
            continue
        analysis.setdefault(trigger, []).append(
            TypeEffectiveness(
                intervention_type=intervention_type,
                usage_count=used,
                effectiveness=round(helpful / used * 100),
            )
        )

    for entries in analysis.values():
        entries.sort(key=lambda e: e.effectiveness, reverse=True)
    return analysis


@dataclass(frozen=True)
class ShownInterventionRow:
    """A check-in that was shown an intervention, joined to its feedback.

    A check-in with several feedback events appears once per event.
    """
    checkin_id: str
    intervention_name: str
    intervention_type: InterventionType
    stress_level: int
    clicked: bool    # feedback was recorded against the check-in
    helpful: Optional[bool] = None
    follow_up_stress_level: Optional[int] = None


@dataclass(frozen=True)
class InterventionUsage:
    """How often one intervention was shown, opened and found helpful."""
    name: str
    intervention_type: InterventionType
    times_shown: int
    times_clicked: int
    click_rate: Optional[int]      # percent of shown
    times_helpful: int
    helpful_rate: Optional[int]    # percent of clicked
    avg_stress_when_shown: Optional[float]
    avg_follow_up_stress: Optional[float]
    stress_reduction: Optional[float]

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "type": self.intervention_type.value,
            "times_shown": self.times_shown,
            "times_clicked": self.times_clicked,
            "click_rate": self.click_rate,
            "times_helpful": self.times_helpful,
            "helpful_rate": self.helpful_rate,
            "avg_stress_when_shown": self.avg_stress_when_shown,
            "avg_follow_up_stress": self.avg_follow_up_stress,
            "stress_reduction": self.stress_reduction,
        }


@dataclass(frozen=True)
class UsageSummary:
    most_used: Optional[str]
    most_effective: Optional[str]
    average_click_rate: Optional[int]
    average_helpful_rate: Optional[int]

    def to_dict(self) -> dict:
        return {
            "most_used": self.most_used,
            "most_effective": self.most_effective,
            "average_click_rate": self.average_click_rate,
            "average_helpful_rate": self.average_helpful_rate,
        }


def _percent(part: int, whole: int) -> Optional[int]:
    return round(part / whole * 100) if whole else None


def _mean(values: Sequence[float]) -> Optional[float]:
    return sum(values) / len(values) if values else None


def intervention_usage_stats(rows: Iterable[ShownInterventionRow]) -> List[InterventionUsage]:
    """Per-intervention usage for an organization, most shown first.

    Rows for the same check-in collapse into one showing: it counts as
    clicked if any feedback exists, and the latest non-null helpful and
    follow-up values win.
    """
    showings: "OrderedDict[str, dict]" = OrderedDict()
    for row in rows:
        showing = showings.setdefault(row.checkin_id, {
            "key": (row.intervention_name, row.intervention_type),
            "stress_level": row.stress_level,
            "clicked": False,
            "helpful": None,
            "follow_up": None,
        })
        showing["clicked"] = showing["clicked"] or row.clicked
        if row.helpful is not None:
            showing["helpful"] = row.helpful
        if row.follow_up_stress_level is not None:
            showing["follow_up"] = row.follow_up_stress_level

    grouped: "OrderedDict[tuple, List[dict]]" = OrderedDict()
    for showing in showings.values():
        grouped.setdefault(showing["key"], []).append(showing)

    usage = []
    for (name, intervention_type), group in grouped.items():
        shown = len(group)
        clicked = sum(1 for s in group if s["clicked"])
        helpful = sum(1 for s in group if s["helpful"] is True)
        stress = _mean([s["stress_level"] for s in group])
        follow_up = _mean([s["follow_up"] for s in group if s["follow_up"] is not None])

        usage.append(InterventionUsage(
            name=name,
            intervention_type=intervention_type,
            times_shown=shown,
            times_clicked=clicked,
            click_rate=_percent(clicked, shown),
            times_helpful=helpful,
            helpful_rate=_percent(helpful, clicked),
            avg_stress_when_shown=round(stress, 1) if stress is not None else None,
            avg_follow_up_stress=round(follow_up, 1) if follow_up is not None else None,
            stress_reduction=(
                round(stress - follow_up, 1) if follow_up is not None else None
            ),
        ))

    usage.sort(key=lambda u: u.times_shown, reverse=True)
    return usage


def usage_summary(
    usage: Sequence[InterventionUsage],
    min_sample: Optional[int] = None,
) -> UsageSummary:
    """Headline numbers over intervention_usage_stats() output.

    The most effective intervention is picked only among those clicked at
    least `min_sample` times.
    """
    if min_sample is None:
        min_sample = EffectivenessConfig().min_sample_size

    sampled = [u for u in usage if u.times_clicked >= min_sample and u.helpful_rate is not None]
    clicked = [u for u in usage if u.times_clicked > 0]
    average_click = _mean([u.click_rate or 0 for u in usage])
    average_helpful = _mean([u.helpful_rate or 0 for u in clicked])

    return UsageSummary(
        most_used=usage[0].name if usage else None,
        most_effective=max(sampled, key=lambda u: u.helpful_rate).name if sampled else None,
        average_click_rate=round(average_click) if average_click is not None else None,
        average_helpful_rate=round(average_helpful) if average_helpful is not None else None,
    )
