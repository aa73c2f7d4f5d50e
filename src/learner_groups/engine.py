"""Greedy group assignment engine.

One deterministic pass over the roster:
- Sizing: derive the number of groups and each group's capacity
- Ordering: strongest learners first, then those with the most preferences
- Placement: best open group per learner, relaxing capacity by one slot
  and then avoidance when nothing else is left
- Post-evaluation: report avoidances and preferences the grouping broke

No randomness; the same ordered input always gives the same result.
"""

import logging
import math

from .models import (
    Group,
    GroupingConfig,
    GroupingMode,
    GroupingRequest,
    GroupingResult,
    GroupResult,
    Issue,
    IssueType,
    Learner,
)
from .translations import tr

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Sizing
# ---------------------------------------------------------------------------

def _positive(value) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    value = int(value)
    return value if value > 0 else None


def _check_mode(config: GroupingConfig) -> None:
    if not isinstance(config.mode, GroupingMode):
        raise ValueError(tr("Unknown grouping mode: {mode}").format(mode=config.mode))


def determine_group_count(total: int, config: GroupingConfig) -> int:
    """Number of groups for ``total`` learners."""
    _check_mode(config)
    size = _positive(config.group_size)
    count = _positive(config.group_count)

    if config.mode == GroupingMode.GROUP_SIZE and size:
        return max(1, math.ceil(total / size))
    if config.mode == GroupingMode.GROUP_COUNT and count:
        return max(1, count)
    return max(1, round(math.sqrt(total)))


def determine_capacities(total: int, group_count: int, config: GroupingConfig) -> list[int]:
    """Capacity of each group.

    Fixed-size mode gives every group the target size. Otherwise learners are
    spread evenly, the first ``total % group_count`` groups taking one extra.
    A group never gets a capacity below 1.
    """
    _check_mode(config)
    size = _positive(config.group_size)
    if config.mode == GroupingMode.GROUP_SIZE and size:
        return [size] * group_count

    base, remainder = divmod(total, group_count)
    return [max(1, base + (1 if index < remainder else 0)) for index in range(group_count)]


# ---------------------------------------------------------------------------
# Ordering
# ---------------------------------------------------------------------------

def order_learners(learners: list[Learner]) -> list[Learner]:
    """Placement order: performance weight desc, then preference count desc.

    ``sorted`` is stable, so input order decides the remaining ties.
    """
    return sorted(learners, key=lambda s: (-s.performance.weight, -len(s.prefer)))


# ---------------------------------------------------------------------------
# Placement
# ---------------------------------------------------------------------------

def select_best_group(
    candidates: list[Group],
    learner: Learner,
    balance_performance: bool,
) -> Group | None:
    """Pick the group ``learner`` should join among ``candidates``.

    Ranked by running score (only when balancing), then member count, then
    how many of the learner's preferred peers are already there.
    """
    if not candidates:
        return None

    def rank(group: Group) -> tuple[int, int, int]:
        score = group.score if balance_performance else 0
        return score, len(group.members), -group.count_matches(learner.prefer)

    return sorted(candidates, key=rank)[0]


def place_learner(
    groups: list[Group],
    learner: Learner,
    config: GroupingConfig,
    issues: list[Issue],
) -> bool:
    """Add ``learner`` to the best available group.

    Returns False when no group has room even after allowing one extra slot;
    the caller is responsible for reporting that.
    """
    candidates = [g for g in groups if len(g.members) < g.capacity]
    if not candidates:
        # One-shot relaxation: every group may overflow by one
        candidates = [g for g in groups if len(g.members) < g.capacity + 1]
        if candidates:
            logger.debug("No open group for %s, allowing one extra slot", learner.id)

    if not candidates:
        return False

    safe = [g for g in candidates if not g.member_ids & learner.avoid]
    preferred = [g for g in safe if g.member_ids & learner.prefer]

    ranking = preferred or safe or candidates
    chosen = select_best_group(ranking, learner, config.balance_performance)
    if chosen is None:
        return False

    if not safe:
        logger.debug("Placing %s in %s despite avoidance", learner.id, chosen.label)
        issues.append(Issue(
            type=IssueType.WARNING,
            message=tr("{name} had to be added to an existing group despite a conflict.").format(
                name=learner.name),
            learner_ids=(learner.id,),
        ))

    chosen.add(learner)
    return True


# ---------------------------------------------------------------------------
# Post-evaluation
# ---------------------------------------------------------------------------

def evaluate_preferences(groups: list[Group], issues: list[Issue]) -> None:
    """Report avoided peers sharing a group and preferred peers placed apart."""
    membership: dict[str, tuple[str, str]] = {}  # learner id -> (group label, name)
    for group in groups:
        for member in group.members:
            membership[member.id] = (group.label, member.name)

    for group in groups:
        by_id = {m.id: m for m in group.members}
        for member in group.members:
            for avoid_id in sorted(member.avoid):
                peer = by_id.get(avoid_id)
                if peer is not None:
                    issues.append(Issue(
                        type=IssueType.CONFLICT,
                        message=tr("{name} should not work together with {peer}.").format(
                            name=member.name, peer=peer.name),
                        learner_ids=(member.id, avoid_id),
                    ))

            for prefer_id in sorted(member.prefer):
                placed = membership.get(prefer_id)
                if placed is None:
                    continue
                label, peer_name = placed
                if label != group.label:
                    issues.append(Issue(
                        type=IssueType.WARNING,
                        message=tr("{name} was not grouped with {peer}.").format(
                            name=member.name, peer=peer_name),
                        learner_ids=(member.id, prefer_id),
                    ))


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------

def build_groups(learners: list[Learner], config: GroupingConfig) -> GroupingResult:
    """Partition ``learners`` into groups according to ``config``.

    Never mutates ``learners``. Raises ValueError for a malformed config.
    """
    issues: list[Issue] = []
    if not learners:
        return GroupingResult()

    total = len(learners)
    group_count = determine_group_count(total, config)
    capacities = determine_capacities(total, group_count, config)
    logger.debug("Sizing %d learners into %d groups, capacities %s", total, group_count, capacities)

    groups = [
        Group(label=tr("Group {number}").format(number=index + 1), capacity=capacity)
        for index, capacity in enumerate(capacities)
    ]

    unassigned: list[Learner] = []
    for learner in order_learners(learners):
        if not place_learner(groups, learner, config, issues):
            unassigned.append(learner)
            issues.append(Issue(
                type=IssueType.CONFLICT,
                message=tr("{name} could not be assigned to any group because of conflicting rules.").format(
                    name=learner.name),
                learner_ids=(learner.id,),
            ))

    evaluate_preferences(groups, issues)

    return GroupingResult(
        groups=[GroupResult(label=g.label, members=list(g.members)) for g in groups],
        unassigned=unassigned,
        issues=issues,
    )


def run_grouping(request: GroupingRequest) -> GroupingResult:
    """Run the engine for one request, turning any failure into a conflict issue."""
    try:
        return build_groups(request.learners, request.config)
    except Exception as error:
        logger.exception("Grouping failed")
        message = str(error) or tr("Unknown error while building groups.")
        return GroupingResult(issues=[Issue(type=IssueType.CONFLICT, message=message)])
