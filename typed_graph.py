"""
typed_graph.py
==============
Append-only directed multigraph whose nodes carry a payload and whose edges
carry a label.

Backed by ``networkx.MultiDiGraph``.  Node ids are consecutive integers
starting at 0 in insertion order; edge keys are a global insertion counter so
that :meth:`TypedGraph.edges` can report edges in the order they were added.
Nothing is ever removed; transformations return a new graph.
"""

from __future__ import annotations

from typing import Any, Callable, Generic, Hashable, Iterator, List, Optional, Tuple, TypeVar

import networkx as nx

P = TypeVar("P")
Q = TypeVar("Q")


class TypedGraph(Generic[P]):
    """Node/edge-labelled graph store.

    Parameters
    ----------
    graph : networkx.MultiDiGraph, optional
        Existing graph to adopt.  Used internally by the transformation
        methods; callers normally start from an empty store.
    """

    def __init__(self, graph: Optional[nx.MultiDiGraph] = None) -> None:
        self._graph = graph if graph is not None else nx.MultiDiGraph()
        self._next_edge_key = (
            max((k for _, _, k in self._graph.edges(keys=True)), default=-1) + 1
        )

    # ------------------------------------------------------------------
    # Insertion
    # ------------------------------------------------------------------

    def add_node(self, payload: P) -> int:
        node_id = self._graph.number_of_nodes()
        self._graph.add_node(node_id, point=payload)
        return node_id

    def add_edge(self, source: int, target: int, label: Hashable = None) -> None:
        """Record ``source -> target``.  No check is made for duplicates or self-loops."""
        self._graph.add_edge(source, target, key=self._next_edge_key, label=label)
        self._next_edge_key += 1

    # ------------------------------------------------------------------
    # Access
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return self._graph.number_of_nodes()

    def __getitem__(self, node_id: int) -> P:
        return self._graph.nodes[node_id]["point"]

    @property
    def node_count(self) -> int:
        return self._graph.number_of_nodes()

    @property
    def edge_count(self) -> int:
        return self._graph.number_of_edges()

    def node_ids(self) -> range:
        return range(self._graph.number_of_nodes())

    def nodes(self) -> Iterator[P]:
        """Payloads in id order."""
        for node_id in self.node_ids():
            yield self._graph.nodes[node_id]["point"]

    def edges(self) -> List[Tuple[int, int, Any]]:
        """``(source, target, label)`` triples in insertion order."""
        triples = sorted(self._graph.edges(keys=True, data="label"), key=lambda e: e[2])
        return [(s, t, label) for s, t, _, label in triples]

    def neighbors(self, node_id: int, label: Hashable) -> List[int]:
        """Ids joined to *node_id* by an edge labelled *label*, in either direction.

        Results follow edge insertion order.  A node appears once per matching
        edge, so duplicated edges yield duplicated ids.
        """
        found = []
        for s, t, key, lbl in self._graph.out_edges(node_id, keys=True, data="label"):
            if lbl == label:
                found.append((key, t))
        for s, t, key, lbl in self._graph.in_edges(node_id, keys=True, data="label"):
            if lbl == label:
                found.append((key, s))
        found.sort()
        return [other for _, other in found]

    # ------------------------------------------------------------------
    # Transformations
    # ------------------------------------------------------------------

    def map_nodes(self, f: Callable[[P], Q]) -> "TypedGraph[Q]":
        """New graph with every payload replaced by ``f(payload)``; edges are kept."""
        graph = nx.MultiDiGraph()
        for node_id in self.node_ids():
            graph.add_node(node_id, point=f(self._graph.nodes[node_id]["point"]))
        for s, t, key, label in self._graph.edges(keys=True, data="label"):
            graph.add_edge(s, t, key=key, label=label)
        return TypedGraph(graph)

    def filter_map_edges(self, f: Callable[[Any], Any], keep: Callable[[Any], bool]) -> "TypedGraph[P]":
        """New graph holding only edges whose label passes *keep*, relabelled with *f*.

        Nodes (ids and payloads) are preserved unchanged.
        """
        graph = nx.MultiDiGraph()
        for node_id in self.node_ids():
            graph.add_node(node_id, point=self._graph.nodes[node_id]["point"])
        for s, t, key, label in self._graph.edges(keys=True, data="label"):
            if keep(label):
                graph.add_edge(s, t, key=key, label=f(label))
        return TypedGraph(graph)

    def to_networkx(self, payload_attrs: Optional[Callable[[P], dict]] = None) -> nx.MultiDiGraph:
        """Copy as a plain ``networkx.MultiDiGraph`` for export or analysis.

        *payload_attrs* turns a payload into a dict of node attributes; by
        default the payload is stored under ``"point"`` unchanged.
        """
        graph = nx.MultiDiGraph()
        for node_id in self.node_ids():
            payload = self._graph.nodes[node_id]["point"]
            attrs = payload_attrs(payload) if payload_attrs else {"point": payload}
            graph.add_node(node_id, **attrs)
        for s, t, label in self.edges():
            if label is None:
                graph.add_edge(s, t)
            else:
                graph.add_edge(s, t, label=label)
        return graph
