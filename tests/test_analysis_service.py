import unittest
from decimal import Decimal

from helpers import tx
from whalegraph.adapters.chain.static_transfer_adapter import StaticTransferAdapter
from whalegraph.adapters.holders.static_holder_adapter import StaticHolderAdapter
from whalegraph.core.dto import Holder
from whalegraph.core.enums import FlowType
from whalegraph.core.models import TransferEdge, TransferGraph
from whalegraph.services.analysis_service import HolderAnalysisService, summarize_relations
from whalegraph.services.explorer import RelationExplorer
from whalegraph.services.fetcher import RateLimitedFetcher

TOKEN = "TOKEN"


def _service(holders, transfers, max_depth=2) -> HolderAnalysisService:
    fetcher = RateLimitedFetcher(StaticTransferAdapter(transfers), delay_sec=0)
    return HolderAnalysisService(
        holders=StaticHolderAdapter({TOKEN: holders}),
        explorer=RelationExplorer(fetcher, max_depth=max_depth),
    )


class HolderAnalysisServiceTests(unittest.TestCase):
    def test_top_holders_sorted_by_share(self) -> None:
        svc = _service(
            [
                Holder("small", None, Decimal("0.01")),
                Holder("big", "big.sol", Decimal("0.30")),
                Holder("mid", None, Decimal("0.10")),
            ],
            [],
        )
        top = svc.top_holders(TOKEN, top_n=2)
        self.assertEqual([h.address for h in top], ["big", "mid"])

    def test_top_n_must_be_positive(self) -> None:
        svc = _service([], [])
        with self.assertRaises(ValueError):
            svc.top_holders(TOKEN, top_n=0)

    def test_transaction_graph_merges_shared_funder(self) -> None:
        svc = _service(
            [Holder("X", None, Decimal("0.2")), Holder("Y", None, Decimal("0.1"))],
            [tx("Z", "X", "0.6", 1), tx("Z", "Y", 3, 2)],
        )

        result = svc.analyze_transactions(TOKEN, top_n=2, min_amount=Decimal("0.5"))

        self.assertEqual([h.address for h in result.top_holders], ["X", "Y"])
        graph = result.graph.graph
        self.assertEqual(list(graph.to_dict()), ["Z"])
        self.assertEqual([e.to for e in graph["Z"]], ["X", "Y"])
        self.assertEqual(result.graph.call_count, 2)

    def test_related_addresses_summaries_and_groups(self) -> None:
        svc = _service(
            [
                Holder("H1", None, Decimal("0.3")),
                Holder("H2", None, Decimal("0.2")),
                Holder("H3", None, Decimal("0.1")),
            ],
            [
                tx("F", "H1", 40, 1),
                tx("H1", "D", 25, 2),
                tx("F", "H2", 60, 3),
                tx("Q", "H3", 5, 4),
            ],
        )

        analysis = svc.analyze_related_addresses(TOKEN, top_n=3, min_amount=Decimal("10"))

        self.assertEqual(analysis.total_holders, 3)
        h1 = analysis.relations["H1"]
        self.assertEqual(h1.incoming_addresses, ["F"])
        # F's largest outbound (to H2) is part of H1's graph too
        self.assertEqual(h1.outgoing_addresses, ["H2", "D"])
        self.assertEqual(h1.total_in_amount, Decimal("40"))
        self.assertEqual(h1.total_out_amount, Decimal("85"))

        self.assertEqual(analysis.relations["H3"].transactions, [])
        self.assertEqual(
            analysis.total_transactions,
            sum(len(r.transactions) for r in analysis.relations.values()),
        )
        self.assertEqual(len(analysis.groups), 1)
        self.assertEqual(analysis.groups[0].holders, ["H1", "H2"])
        self.assertEqual(analysis.groups[0].shared_addresses, ["F", "H2"])

        self.assertEqual(analysis.graphs["H1"].depths["F"], 1)
        self.assertEqual(analysis.graphs["H1"].depths["D"], -1)

    def test_each_holder_trace_has_its_own_session(self) -> None:
        svc = _service(
            [Holder("H1", None, Decimal("0.3")), Holder("H2", None, Decimal("0.2"))],
            [tx("F", "H1", 40, 1), tx("F", "H2", 60, 3)],
            max_depth=1,
        )
        analysis = svc.analyze_related_addresses(TOKEN, top_n=2, min_amount=Decimal("10"))
        self.assertEqual(analysis.graphs["H1"].call_count, 2)
        self.assertEqual(analysis.graphs["H2"].call_count, 2)
        self.assertEqual(analysis.graphs["H2"].visited, ["H2"])


class SummarizeRelationsTests(unittest.TestCase):
    def test_counts_and_totals(self) -> None:
        g = TransferGraph()
        g.add_edge("F", TransferEdge("H", Decimal("10"), 1, FlowType.IN))
        g.add_edge("F", TransferEdge("H", Decimal("5"), 2, FlowType.IN))
        g.add_edge("H", TransferEdge("D", Decimal("7"), 3, FlowType.OUT))

        rel = summarize_relations("H", g)

        self.assertEqual(rel.incoming_addresses, ["F"])
        self.assertEqual(rel.outgoing_addresses, ["D"])
        self.assertEqual(rel.total_in_amount, Decimal("15"))
        self.assertEqual(rel.total_out_amount, Decimal("7"))
        self.assertEqual([t.from_address for t in rel.transactions], ["F", "F", "H"])


if __name__ == "__main__":
    unittest.main()
