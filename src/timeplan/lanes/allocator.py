from __future__ import annotations

import heapq
import logging
from collections import defaultdict
from dataclasses import dataclass, replace
from datetime import date, timedelta
from typing import Callable, Iterable, Optional, Sequence

import numpy as np

from timeplan.calendar import TimeInterval, intervals_overlap, overlap_mask
from timeplan.lanes._exceptions import LaneConflictError, LaneError

logger = logging.getLogger(__name__)

_ONE_DAY = timedelta(days=1)

LaneIdFactory = Callable[[str, int], str]


@dataclass(frozen=True, slots=True)
class Lane:
    id: str
    group_id: str
    order: int


@dataclass(frozen=True, slots=True)
class LaneEntity:
    id: str
    start: date
    end: date
    lane_id: Optional[str] = None
    group_id: Optional[str] = None

    def __post_init__(self) -> None:
        TimeInterval(self.start, self.end)

    @property
    def interval(self) -> TimeInterval:
        return TimeInterval(self.start, self.end)

    def overlaps(self, other: LaneEntity) -> bool:
        return intervals_overlap(self.start, self.end, other.start, other.end)


@dataclass(frozen=True, slots=True)
class LaneConflict:
    entity_id: str
    blocking_id: str
    lane_id: Optional[str]
    blocking: LaneEntity


@dataclass(frozen=True, slots=True)
class LaneMove:
    id: str
    new_lane_id: str
    previous_lane_id: Optional[str] = None


@dataclass(frozen=True, slots=True)
class LaneRepair:
    moved: tuple[LaneMove, ...] = ()
    created_lanes: tuple[Lane, ...] = ()

    @property
    def is_clean(self) -> bool:
        return not self.moved and not self.created_lanes

    def apply(self, entities: Iterable[LaneEntity]) -> list[LaneEntity]:
        """New entity records with the moves applied; the input is untouched."""
        targets = {m.id: m.new_lane_id for m in self.moved}
        return [
            replace(e, lane_id=targets[e.id]) if e.id in targets else e
            for e in entities
        ]


def _first_overlap(entity: LaneEntity, members: Sequence[LaneEntity]) -> Optional[int]:
    if not members:
        return None
    starts = np.array([m.start for m in members], dtype="datetime64[D]")
    ends = np.array([m.end for m in members], dtype="datetime64[D]")
    hits = np.flatnonzero(overlap_mask(entity.start, entity.end, starts, ends))
    return int(hits[0]) if hits.size else None


def _default_lane_id(group_id: str, order: int) -> str:
    return f"{group_id}-lane-{order}"


class LaneAllocator:
    """
    Keeps the entities of a lane from overlapping.

    Live edits are only ever checked: a conflict blocks the write.  Automatic
    reassignment happens in ``repair`` (data load, on demand) and ``pack``
    (fresh entities), both of which return a diff for the caller to apply and
    only ever add lanes.
    """

    DEFAULT_GROUP: str = "default"

    def __init__(self, lane_id_factory: Optional[LaneIdFactory] = None) -> None:
        self._lane_id_factory: LaneIdFactory = lane_id_factory or _default_lane_id

    # ── live edits ───────────────────────────────────────────────────────

    def check_conflict(
        self,
        entity: LaneEntity,
        lane_members: Sequence[LaneEntity],
    ) -> Optional[LaneConflict]:
        others = [m for m in lane_members if m.id != entity.id]
        index = _first_overlap(entity, others)
        if index is None:
            return None
        blocking = others[index]
        return LaneConflict(
            entity_id=entity.id,
            blocking_id=blocking.id,
            lane_id=blocking.lane_id if blocking.lane_id is not None else entity.lane_id,
            blocking=blocking,
        )

    def ensure_no_conflict(self, entity: LaneEntity, lane_members: Sequence[LaneEntity]) -> None:
        conflict = self.check_conflict(entity, lane_members)
        if conflict is not None:
            raise LaneConflictError(conflict)

    # ── batch repair ─────────────────────────────────────────────────────

    def repair(
        self,
        entities: Iterable[LaneEntity],
        lanes: Iterable[Lane] = (),
        group_id: Optional[str] = None,
    ) -> LaneRepair:
        """
        Move overlapping entities apart, adding lanes only when needed.

        An entity's group comes from its lane, then its own ``group_id``,
        then the ``group_id`` argument and finally ``DEFAULT_GROUP``.
        """
        fallback = group_id if group_id is not None else self.DEFAULT_GROUP
        lanes_by_group: dict[str, list[Lane]] = defaultdict(list)
        lane_index: dict[str, Lane] = {}
        for lane in lanes:
            if lane.id in lane_index:
                raise LaneError(f"Duplicate lane id {lane.id!r}.")
            lanes_by_group[lane.group_id].append(lane)
            lane_index[lane.id] = lane

        members_by_group: dict[str, list[LaneEntity]] = defaultdict(list)
        for entity in entities:
            owner = self._group_of(entity, lane_index, fallback)
            members_by_group[owner].append(entity)
            if entity.lane_id is not None and entity.lane_id not in lane_index:
                # Lanes only known through their members are kept as existing lanes.
                group_lanes = lanes_by_group[owner]
                lane = Lane(entity.lane_id, owner, max((l.order for l in group_lanes), default=-1) + 1)
                group_lanes.append(lane)
                lane_index[lane.id] = lane

        used_ids = set(lane_index)
        moved: list[LaneMove] = []
        created: list[Lane] = []
        for owner, members in members_by_group.items():
            group_moves, group_lanes = self._repair_group(
                owner, lanes_by_group[owner], members, used_ids
            )
            moved.extend(group_moves)
            created.extend(group_lanes)

        logger.debug("Lane repair: %d moved, %d lanes created", len(moved), len(created))
        return LaneRepair(tuple(moved), tuple(created))

    @staticmethod
    def _group_of(entity: LaneEntity, lane_index: dict[str, Lane], fallback: str) -> str:
        lane = lane_index.get(entity.lane_id) if entity.lane_id is not None else None
        if lane is not None:
            if entity.group_id is not None and entity.group_id != lane.group_id:
                raise LaneError(
                    f"Entity {entity.id!r} claims group {entity.group_id!r} "
                    f"but lane {lane.id!r} belongs to {lane.group_id!r}."
                )
            return lane.group_id
        return entity.group_id if entity.group_id is not None else fallback

    def _repair_group(
        self,
        group_id: str,
        group_lanes: list[Lane],
        members: list[LaneEntity],
        used_ids: set[str],
    ) -> tuple[list[LaneMove], list[Lane]]:
        lanes = sorted(group_lanes, key=lambda l: (l.order, l.id))
        assignment: dict[str, list[LaneEntity]] = {lane.id: [] for lane in lanes}
        unassigned: list[LaneEntity] = []
        for entity in members:
            if entity.lane_id is None:
                unassigned.append(entity)
            else:
                assignment[entity.lane_id].append(entity)

        moves: list[LaneMove] = []
        created: list[Lane] = []

        def relocate(entity: LaneEntity, exclude: Optional[str]) -> None:
            target = next(
                (
                    lane for lane in lanes
                    if lane.id != exclude and _first_overlap(entity, assignment[lane.id]) is None
                ),
                None,
            )
            if target is None:
                target = self._new_lane(group_id, lanes, used_ids)
                lanes.append(target)
                assignment[target.id] = []
                created.append(target)
                logger.info("Lane repair created lane %s in group %s for %s", target.id, group_id, entity.id)
            assignment[target.id].append(entity)
            moves.append(LaneMove(entity.id, target.id, entity.lane_id))

        # ``lanes`` grows while sweeping; created lanes are swept too.
        i = 0
        while i < len(lanes):
            lane = lanes[i]
            kept: list[LaneEntity] = []
            for entity in sorted(assignment[lane.id], key=lambda e: (e.start, e.end, e.id)):
                if _first_overlap(entity, kept) is None:
                    kept.append(entity)
                else:
                    relocate(entity, exclude=lane.id)
            assignment[lane.id] = kept
            i += 1

        for entity in sorted(unassigned, key=lambda e: (e.start, e.end, e.id)):
            relocate(entity, exclude=None)

        return moves, created

    def _new_lane(self, group_id: str, lanes: Sequence[Lane], used_ids: set[str]) -> Lane:
        order = max((l.order for l in lanes), default=-1) + 1
        base = self._lane_id_factory(group_id, order)
        lane_id, suffix = base, 2
        while lane_id in used_ids:
            lane_id = f"{base}-{suffix}"
            suffix += 1
        used_ids.add(lane_id)
        return Lane(lane_id, group_id, order)

    # ── fresh placement ──────────────────────────────────────────────────

    def pack(
        self,
        entities: Iterable[LaneEntity],
        group_id: str,
        lanes: Iterable[Lane] = (),
    ) -> LaneRepair:
        """
        Place entities into as few lanes as possible, ignoring current lanes.

        Existing ``lanes`` of the group are treated as empty and filled first
        (by order); further lanes are created as needed.  Each entity goes to
        the lane that became free earliest.
        """
        group_lanes = sorted(
            (l for l in lanes if l.group_id == group_id), key=lambda l: (l.order, l.id)
        )
        used_ids = {l.id for l in group_lanes}
        heap: list[tuple[date, int, str]] = [(date.min, l.order, l.id) for l in group_lanes]
        heapq.heapify(heap)

        moves: list[LaneMove] = []
        created: list[Lane] = []
        known = list(group_lanes)
        for entity in sorted(entities, key=lambda e: (e.start, e.end, e.id)):
            if heap and heap[0][0] < entity.start:
                _, order, lane_id = heapq.heappop(heap)
            else:
                lane = self._new_lane(group_id, known, used_ids)
                known.append(lane)
                created.append(lane)
                order, lane_id = lane.order, lane.id
            heapq.heappush(heap, (entity.end, order, lane_id))
            if entity.lane_id != lane_id:
                moves.append(LaneMove(entity.id, lane_id, entity.lane_id))

        return LaneRepair(tuple(moves), tuple(created))

    # ── suggestions ──────────────────────────────────────────────────────

    def suggest_slot(
        self,
        entity: LaneEntity,
        lane_members: Sequence[LaneEntity],
        direction: str = "auto",
    ) -> TimeInterval:
        """
        Nearest conflict-free interval of the same length on this lane.

        Only a proposal: the live path never applies it on its own.
        ``direction`` is ``"forward"``, ``"backward"`` or ``"auto"`` (the
        smaller shift wins, backward on ties).
        """
        if direction not in ("auto", "forward", "backward"):
            raise ValueError(f"direction must be auto, forward or backward; got {direction!r}.")
        others = [m for m in lane_members if m.id != entity.id]
        span = entity.end - entity.start

        def blockers(start: date) -> list[LaneEntity]:
            end = start + span
            return [m for m in others if intervals_overlap(start, end, m.start, m.end)]

        if not blockers(entity.start):
            return entity.interval

        forward = entity.start
        hits = blockers(forward)
        while hits:
            forward = max(m.end for m in hits) + _ONE_DAY
            hits = blockers(forward)

        backward: Optional[date] = entity.start
        hits = blockers(entity.start)
        while hits:
            try:
                backward = min(m.start for m in hits) - _ONE_DAY - span
            except OverflowError:
                backward = None
                break
            hits = blockers(backward)

        if direction == "forward" or backward is None:
            chosen = forward
        elif direction == "backward":
            chosen = backward
        else:
            chosen = backward if entity.start - backward <= forward - entity.start else forward
        return TimeInterval(chosen, chosen + span)
