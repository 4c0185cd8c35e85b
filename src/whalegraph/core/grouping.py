from __future__ import annotations

from typing import Dict, List, Mapping, Set

from whalegraph.core.models import TransferGraph, WhaleGroup


def find_whale_groups(graphs: Mapping[str, TransferGraph]) -> List[WhaleGroup]:
    """
    Join holders whose relation graphs touch a common address.

    A holder showing up inside another holder's graph counts as a shared
    address too. Only groups of two or more holders are returned, in the
    order their first member appears in ``graphs``.
    """
    holders = list(graphs)
    members: Dict[str, Set[str]] = {}
    for h in holders:
        addrs = set(graphs[h].addresses())
        addrs.add(h)
        members[h] = addrs

    parent: Dict[str, str] = {h: h for h in holders}

    def find(x: str) -> str:
        while parent[x] != x:
            parent[x] = parent[parent[x]]
            x = parent[x]
        return x

    owner: Dict[str, str] = {}
    for h in holders:
        for addr in members[h]:
            if addr in owner:
                ra, rb = find(owner[addr]), find(h)
                if ra != rb:
                    parent[rb] = ra
            else:
                owner[addr] = h

    grouped: Dict[str, List[str]] = {}
    for h in holders:
        grouped.setdefault(find(h), []).append(h)

    out: List[WhaleGroup] = []
    for group in grouped.values():
        if len(group) < 2:
            continue
        counts: Dict[str, int] = {}
        for h in group:
            for addr in members[h]:
                counts[addr] = counts.get(addr, 0) + 1
        shared = sorted(a for a, c in counts.items() if c >= 2)
        out.append(WhaleGroup(holders=group, shared_addresses=shared))
    return out
