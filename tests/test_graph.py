import unittest
from decimal import Decimal

from whalegraph.core.enums import FlowType
from whalegraph.core.grouping import find_whale_groups
from whalegraph.core.models import TransferEdge, TransferGraph, merge_graphs


def _edge(to: str, amount: str = "1", ts: int = 1, flow: FlowType = FlowType.IN) -> TransferEdge:
    return TransferEdge(to=to, amount=Decimal(amount), timestamp=ts, flow_type=flow)


class TransferGraphTests(unittest.TestCase):
    def test_add_edge_creates_slot_then_appends(self) -> None:
        g = TransferGraph()
        g.add_edge("a", _edge("b", ts=1))
        g.add_edge("a", _edge("c", ts=2))

        self.assertIn("a", g)
        self.assertEqual([e.to for e in g["a"]], ["b", "c"])
        self.assertEqual(len(g), 1)
        self.assertEqual(g.edge_count, 2)

    def test_addresses_in_first_seen_order(self) -> None:
        g = TransferGraph()
        g.add_edge("z", _edge("x"))
        g.add_edge("z", _edge("y"))
        g.add_edge("x", _edge("z", flow=FlowType.OUT))
        self.assertEqual(g.addresses(), ["z", "x", "y"])

    def test_merge_concatenates_by_origin(self) -> None:
        g1 = TransferGraph()
        g1.add_edge("z", _edge("x", ts=1))
        g2 = TransferGraph()
        g2.add_edge("z", _edge("y", ts=2))
        g2.add_edge("w", _edge("y", ts=3))

        merged = merge_graphs([g1, g2])

        self.assertEqual(list(merged.to_dict()), ["z", "w"])
        self.assertEqual([e.to for e in merged["z"]], ["x", "y"])
        # inputs untouched
        self.assertEqual(len(g1["z"]), 1)

    def test_merge_keeps_duplicates_from_independent_graphs(self) -> None:
        g1 = TransferGraph()
        g1.add_edge("z", _edge("x", ts=1))
        g2 = TransferGraph()
        g2.add_edge("z", _edge("x", ts=1))
        self.assertEqual(merge_graphs([g1, g2]).edge_count, 2)

    def test_empty_graph_is_falsy(self) -> None:
        self.assertFalse(TransferGraph())
        self.assertEqual(merge_graphs([]).edge_count, 0)


class WhaleGroupTests(unittest.TestCase):
    def test_holders_sharing_a_counterparty_form_a_group(self) -> None:
        g1 = TransferGraph()
        g1.add_edge("funder", _edge("h1"))
        g2 = TransferGraph()
        g2.add_edge("funder", _edge("h2"))
        g3 = TransferGraph()
        g3.add_edge("other", _edge("h3"))

        groups = find_whale_groups({"h1": g1, "h2": g2, "h3": g3})

        self.assertEqual(len(groups), 1)
        self.assertEqual(groups[0].holders, ["h1", "h2"])
        self.assertEqual(groups[0].shared_addresses, ["funder"])

    def test_holder_inside_another_graph_links_them(self) -> None:
        g1 = TransferGraph()
        g1.add_edge("h1", _edge("h2", flow=FlowType.OUT))
        groups = find_whale_groups({"h1": g1, "h2": TransferGraph()})

        self.assertEqual(len(groups), 1)
        self.assertEqual(groups[0].holders, ["h1", "h2"])
        self.assertEqual(groups[0].shared_addresses, ["h2"])

    def test_transitive_links_merge_groups(self) -> None:
        g1 = TransferGraph()
        g1.add_edge("a", _edge("h1"))
        g2 = TransferGraph()
        g2.add_edge("a", _edge("h2"))
        g2.add_edge("b", _edge("h2"))
        g3 = TransferGraph()
        g3.add_edge("b", _edge("h3"))

        groups = find_whale_groups({"h1": g1, "h2": g2, "h3": g3})
        self.assertEqual(len(groups), 1)
        self.assertEqual(groups[0].holders, ["h1", "h2", "h3"])
        self.assertEqual(groups[0].shared_addresses, ["a", "b"])

    def test_isolated_holders_produce_no_groups(self) -> None:
        self.assertEqual(find_whale_groups({"h1": TransferGraph(), "h2": TransferGraph()}), [])


if __name__ == "__main__":
    unittest.main()
