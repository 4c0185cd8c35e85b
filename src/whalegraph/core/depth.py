from __future__ import annotations

from collections import deque
from typing import Deque, Dict, List, Tuple

from whalegraph.core.enums import FlowType
from whalegraph.core.models import TransferGraph


DEPTH_STRATEGIES = ("bfs", "single_pass")


def classify_depths(graph: TransferGraph, root: str, strategy: str = "bfs") -> Dict[str, int]:
    """
    Label every address with a signed depth relative to ``root`` (root = 0).

    Senders sit one layer above receivers: funding sources get positive
    depths, destinations negative ones.

    - ``bfs``: breadth-first walk from the root, every connected address is
      labelled with its shortest-hop depth. Ties follow graph iteration order.
    - ``single_pass``: one pass over the edges in iteration order, first write
      wins. Addresses whose reference node is still unlabelled fall back to a
      reference depth of 0.
    """
    if strategy == "bfs":
        return _bfs_depths(graph, root)
    if strategy == "single_pass":
        return _single_pass_depths(graph, root)
    raise ValueError(f"Unknown depth strategy: {strategy!r}")


def _single_pass_depths(graph: TransferGraph, root: str) -> Dict[str, int]:
    depths: Dict[str, int] = {root: 0}
    for origin, e in graph.edges():
        if e.flow_type == FlowType.IN:
            if origin not in depths:
                depths[origin] = depths.get(e.to, 0) + 1
        else:
            if e.to not in depths:
                depths[e.to] = depths.get(origin, 0) - 1
    return depths


def _bfs_depths(graph: TransferGraph, root: str) -> Dict[str, int]:
    # neighbour -> depth offset, in both directions
    links: Dict[str, List[Tuple[str, int]]] = {}
    for sender, e in graph.edges():
        links.setdefault(sender, []).append((e.to, -1))
        links.setdefault(e.to, []).append((sender, +1))

    depths: Dict[str, int] = {root: 0}
    q: Deque[str] = deque([root])
    while q:
        addr = q.popleft()
        for neighbour, offset in links.get(addr, []):
            if neighbour in depths:
                continue
            depths[neighbour] = depths[addr] + offset
            q.append(neighbour)
    return depths


def layers(depths: Dict[str, int]) -> Dict[int, List[str]]:
    """Group addresses by depth, deepest funding layer first."""
    out: Dict[int, List[str]] = {}
    for addr, d in depths.items():
        out.setdefault(d, []).append(addr)
    return dict(sorted(out.items(), key=lambda kv: kv[0], reverse=True))
