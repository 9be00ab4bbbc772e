"""
galaxygen.py
============
Core procedural spiral-galaxy generator.

Lays out a galaxy skeleton around a centre point, then grows small random
"system" clouds around every skeleton node.  The result is an annotated graph:
each node is a 2-D point tagged with a :class:`NodeType`, each structural
edge joins a parent to the child grown from it.

Layout
------
1. Root:      a single node at the centre.
2. Arms:      ``nb_arms`` chains of ``nb_arm_bones`` links, evenly spaced
              around a full turn.  Each link is ``cloud_radius`` long and the
              heading turns by ``arm_slope / divisor`` after every link, the
              divisor growing by ``slope_factor`` (spiral curvature).
3. Extensions: from the second link on, two lateral chains of Ext nodes
              fan out perpendicular to the arm, wider towards the arm tip.
4. Loners:    ``nb_loners`` unattached nodes, uniform in angle and radius
              inside the galaxy radius.
5. Clouds:    ``cloud_population`` System candidates around every node that
              exists before this stage (clouds never grow around clouds).

Spacing filter
--------------
When ``min_distance`` is set, a cloud candidate is dropped if it lies closer
than ``min_distance`` to any *two-hop neighbour* of its parent: a node
reached by one Overlapping edge (inserted within ``2 * cloud_radius``) and
then one Frame edge.  This is a cheap approximation, not an exhaustive
nearest-neighbour search.

Usage (importable)
------------------
    from galaxygen import GalaxyBuilder
    from vector2d import Vector
    galaxy = (GalaxyBuilder()
              .configure(cloud_radius=4.0, nb_arm_bones=32)
              .configure(min_distance=2.0)
              .build(Vector(0.0, 0.0)))
    for p in galaxy:
        print(p.x, p.y, p.data)
"""

from __future__ import annotations

import dataclasses
import enum
import math
from typing import Any, Callable, Iterator, List, Optional, TypeVar

import numpy as np

from typed_graph import TypedGraph
from vector2d import DataPoint, Vector

U = TypeVar("U")


# ---------------------------------------------------------------------------
# Node / edge classification
# ---------------------------------------------------------------------------

class NodeType(enum.Enum):
    ROOT = "root"
    ARM = "arm"
    EXT = "ext"
    LONER = "loner"
    SYSTEM = "system"


class EdgeType(enum.Enum):
    """Edge labels used while building.  Only FRAME edges survive into a Galaxy."""

    FRAME = "frame"              # parent -> child created during growth
    OVERLAPPING = "overlapping"  # proximity lookup aid, never structural


# ---------------------------------------------------------------------------
# Configuration dataclass
# ---------------------------------------------------------------------------

@dataclasses.dataclass(frozen=True)
class GalaxyBuilder:
    """All tunable parameters for galaxy generation.

    Instances are immutable.  Use :meth:`configure` to derive a modified
    copy, chaining calls as needed, then :meth:`build`.

    Spatial units
    -------------
    Distances share an arbitrary unit.  ``cloud_radius`` doubles as the arm
    bone length and as the scale of every other distance in the layout.
    """

    # ---- clouds ----
    cloud_population: int = 2        # System candidates drawn per node
    cloud_radius: float = 16.0       # max cloud distance; also the arm bone length

    # ---- arms ----
    nb_arms: int = 5
    nb_arm_bones: int = 12           # links per arm
    arm_slope: float = math.pi / 8   # base heading change per link (radians)
    slope_factor: float = 0.90       # divisor growth per link (curvature decay)
    arm_width_factor: float = 1.0 / 16.0  # extension fan-out rate

    # ---- outliers ----
    nb_loners: int = 16

    # ---- spacing ----
    min_distance: Optional[float] = None  # must not exceed cloud_radius

    # ---- reproducibility ----
    seed: Optional[int] = None       # None = fresh entropy on every build

    def configure(self, **changes: Any) -> "GalaxyBuilder":
        """Return a copy with the given fields replaced.

        Raises ``TypeError`` for unknown field names.
        """
        return dataclasses.replace(self, **changes)

    def validation_error(self) -> Optional[str]:
        """Describe why this configuration cannot be built, or ``None`` if it can."""
        if self.min_distance is not None and self.min_distance > self.cloud_radius:
            return (
                f"min_distance ({self.min_distance}) must not exceed "
                f"cloud_radius ({self.cloud_radius})"
            )
        return None

    def is_valid(self) -> bool:
        return self.validation_error() is None

    def estimated_capacity(self) -> int:
        """Upper-bound guess of the node count, used to pre-size buffers."""
        skeleton = 1 + 3 * self.nb_arms * self.nb_arm_bones + self.nb_loners
        return (1 + self.cloud_population) * skeleton

    def build(self, center: Vector = Vector(0.0, 0.0)) -> Optional["Galaxy"]:
        """Generate a galaxy around *center*.

        Returns ``None`` when the configuration is invalid (see
        :meth:`validation_error`); a partially built galaxy is never returned.
        """
        if not self.is_valid():
            return None
        return _GalaxyLayout(self).run(center)


# ---------------------------------------------------------------------------
# Generation
# ---------------------------------------------------------------------------

class _GalaxyLayout:
    """State of a single ``build`` call.

    Owns the graph under construction, the random generator, and a numpy
    buffer mirroring node positions so that proximity scans are vectorised.
    """

    def __init__(self, cfg: GalaxyBuilder) -> None:
        self.cfg = cfg
        self._rng = np.random.default_rng(cfg.seed)
        self.graph: TypedGraph[DataPoint[NodeType]] = TypedGraph()
        self._xy = np.empty((max(cfg.estimated_capacity(), 1), 2), dtype=np.float64)
        self._overlap_sq = (2.0 * cfg.cloud_radius) ** 2

    # ------------------------------------------------------------------
    # Node insertion
    # ------------------------------------------------------------------

    def _insert(self, point: Vector, node_type: NodeType) -> int:
        """Add a node and record Overlapping edges to every close existing node."""
        n = len(self.graph)
        if n > 0:
            d2 = np.sum((self._xy[:n] - (point.x, point.y)) ** 2, axis=1)
            close = np.nonzero(d2 < self._overlap_sq)[0]
        else:
            close = ()

        node_id = self.graph.add_node(point.with_data(node_type))
        if node_id >= len(self._xy):
            # Estimate was short; grow geometrically
            self._xy = np.concatenate([self._xy, np.empty_like(self._xy)])
        self._xy[node_id] = (point.x, point.y)

        for other in close:
            self.graph.add_edge(node_id, int(other), EdgeType.OVERLAPPING)
        return node_id

    def _position(self, node_id: int) -> Vector:
        return self.graph[node_id].point

    # ------------------------------------------------------------------
    # Skeleton
    # ------------------------------------------------------------------

    def _populate_arm(self, root_id: int, arm_angle: float) -> None:
        cfg = self.cfg
        prev_id = root_id
        position = self._position(root_id)
        bone_length = cfg.cloud_radius
        divisor = 1.0

        for iteration in range(cfg.nb_arm_bones):
            new_position = position + Vector.polar(bone_length, arm_angle)
            arm_id = self._insert(new_position, NodeType.ARM)
            self.graph.add_edge(prev_id, arm_id, EdgeType.FRAME)

            # A zero-length bone has no direction to branch from
            if iteration != 0 and new_position != position:
                direction = (new_position - position).normalize()
                self._populate_ext(arm_id, iteration, direction)

            prev_id = arm_id
            position = new_position
            arm_angle += cfg.arm_slope / divisor
            divisor += cfg.slope_factor

    def _populate_ext(self, arm_id: int, iteration: int, direction: Vector) -> None:
        """Grow two Ext chains on either side of an arm node.

        The total half-width is ``iteration * 2 * cloud_radius * arm_width_factor``;
        points are spaced evenly along it, at least one per side.
        """
        position = self._position(arm_id)
        bone_length = self.cfg.cloud_radius * 2.0

        normal = direction.perpendicular() * (iteration * bone_length * self.cfg.arm_width_factor)
        nb_points = int(math.floor(normal.length() / abs(bone_length))) + 1
        step = normal / nb_points

        prev_pos, prev_neg = arm_id, arm_id
        for i in range(1, nb_points + 1):
            ext_pos = self._insert(position + step * i, NodeType.EXT)
            ext_neg = self._insert(position - step * i, NodeType.EXT)
            self.graph.add_edge(prev_pos, ext_pos, EdgeType.FRAME)
            self.graph.add_edge(prev_neg, ext_neg, EdgeType.FRAME)
            prev_pos, prev_neg = ext_pos, ext_neg

    def _galaxy_radius(self, center: Vector) -> float:
        n = len(self.graph)
        d2 = np.sum((self._xy[:n] - (center.x, center.y)) ** 2, axis=1)
        return float(np.sqrt(d2.max()))

    def _populate_loners(self, center: Vector, galaxy_radius: float) -> None:
        for _ in range(self.cfg.nb_loners):
            angle = self._rng.uniform(0.0, 2.0 * math.pi)
            dist = self._rng.uniform(0.0, galaxy_radius)
            self._insert(center + Vector.polar(dist, angle), NodeType.LONER)

    # ------------------------------------------------------------------
    # Clouds
    # ------------------------------------------------------------------

    def _two_hop_neighbors(self, node_id: int) -> List[int]:
        return [
            far
            for near in self.graph.neighbors(node_id, EdgeType.OVERLAPPING)
            for far in self.graph.neighbors(near, EdgeType.FRAME)
        ]

    def _is_spaced(self, candidate: Vector, parent_id: int) -> bool:
        """True if *candidate* keeps ``min_distance`` from every two-hop neighbour."""
        ids = self._two_hop_neighbors(parent_id)
        if not ids:
            return True
        d2 = np.sum((self._xy[ids] - (candidate.x, candidate.y)) ** 2, axis=1)
        return not bool(np.any(d2 < self.cfg.min_distance ** 2))

    def _populate_cloud(self) -> None:
        cfg = self.cfg
        min_dist = cfg.min_distance if cfg.min_distance is not None else 0.0

        # Fixed range: nodes added below must not get clouds of their own
        for parent_id in range(len(self.graph)):
            p = self._position(parent_id)
            for _ in range(cfg.cloud_population):
                angle = self._rng.uniform(0.0, 2.0 * math.pi)
                dist = self._rng.uniform(min_dist, cfg.cloud_radius)
                candidate = p + Vector.polar(dist, angle)

                # A rejected draw is dropped, not retried: at most cloud_population per node
                if cfg.min_distance is not None and not self._is_spaced(candidate, parent_id):
                    continue

                sys_id = self._insert(candidate, NodeType.SYSTEM)
                self.graph.add_edge(parent_id, sys_id, EdgeType.FRAME)

    # ------------------------------------------------------------------
    # Main entry point
    # ------------------------------------------------------------------

    def run(self, center: Vector) -> "Galaxy":
        cfg = self.cfg
        root_id = self._insert(center, NodeType.ROOT)

        angle_step = 2.0 * math.pi / cfg.nb_arms if cfg.nb_arms else 0.0
        for k in range(cfg.nb_arms):
            self._populate_arm(root_id, k * angle_step)

        galaxy_radius = self._galaxy_radius(center)
        self._populate_loners(center, galaxy_radius)
        self._populate_cloud()

        structural = self.graph.filter_map_edges(
            lambda label: None, keep=lambda label: label is EdgeType.FRAME
        )
        return Galaxy(structural, center, galaxy_radius)


# ---------------------------------------------------------------------------
# Public result
# ---------------------------------------------------------------------------

class Galaxy:
    """A generated galaxy.

    Holds the structural graph only: node payloads are
    ``DataPoint[NodeType]`` and every edge is an unlabelled parent -> child
    link.  A Galaxy is consumed by exactly one of :meth:`into_inner`,
    :meth:`into_mapped`, :meth:`into_points` or iteration; a second consuming
    call raises ``RuntimeError``.
    """

    def __init__(self, graph: TypedGraph[DataPoint[NodeType]], center: Vector, galaxy_radius: float) -> None:
        self._graph: Optional[TypedGraph[DataPoint[NodeType]]] = graph
        self._size = len(graph)
        self.center = center
        self.galaxy_radius = galaxy_radius   # skeleton extent before loners / clouds

    def __len__(self) -> int:
        return self._size

    def __repr__(self) -> str:
        state = "consumed" if self._graph is None else f"{self._size} nodes"
        return f"Galaxy({state}, radius={self.galaxy_radius:.3f})"

    def _take(self) -> TypedGraph[DataPoint[NodeType]]:
        if self._graph is None:
            raise RuntimeError("Galaxy has already been consumed")
        graph, self._graph = self._graph, None
        return graph

    def into_inner(self) -> TypedGraph[DataPoint[NodeType]]:
        return self._take()

    def into_mapped(self, f: Callable[[NodeType], U]) -> TypedGraph[DataPoint[U]]:
        """Structural graph with each node's classification replaced by ``f(classification)``."""
        return self._take().map_nodes(lambda dp: dp.map(f))

    def into_points(self) -> Iterator[DataPoint[NodeType]]:
        """Lazy iterator over every node, in insertion order."""
        return self._take().nodes()

    def __iter__(self) -> Iterator[DataPoint[NodeType]]:
        return self.into_points()
