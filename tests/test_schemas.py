import json
import os
import tempfile
import unittest
from decimal import Decimal

from whalegraph.core.dto import Holder
from whalegraph.core.enums import FlowType
from whalegraph.core.models import HolderAnalysis, TraceResult, TransferEdge, TransferGraph, WhaleGroup
from whalegraph.io.output_writer import write_json
from whalegraph.io.schemas import holder_analysis_to_dict, trace_result_to_dict
from whalegraph.services.analysis_service import summarize_relations


def _result() -> TraceResult:
    g = TransferGraph()
    g.add_edge("F", TransferEdge("R", Decimal("12.5"), 1700000000, FlowType.IN))
    return TraceResult(root_addresses=["R"], graph=g, depths={"R": 0, "F": 1}, call_count=4, visited=["R", "F"])


class SchemaTests(unittest.TestCase):
    def test_trace_result_shape(self) -> None:
        d = trace_result_to_dict(_result())

        self.assertEqual(d["root_addresses"], ["R"])
        self.assertEqual(d["call_count"], 4)
        self.assertEqual(d["depths"], {"R": 0, "F": 1})
        self.assertFalse(d["truncated"])
        self.assertEqual(
            d["graph"],
            {"F": [{"to": "R", "amount": "12.5", "timestamp": 1700000000, "time": "2023-11-14 22:13:20", "type": "in"}]},
        )

    def test_missing_depths_serialize_as_null(self) -> None:
        d = trace_result_to_dict(TraceResult(root_addresses=["R"]))
        self.assertIsNone(d["depths"])
        self.assertEqual(d["graph"], {})

    def test_holder_analysis_is_json_ready(self) -> None:
        result = _result()
        analysis = HolderAnalysis(
            token_address="TOKEN",
            top_holders=[Holder("R", None, Decimal("0.25"))],
            relations={"R": summarize_relations("R", result.graph)},
            graphs={"R": result},
            groups=[WhaleGroup(holders=["R", "S"], shared_addresses=["F"])],
            total_holders=1,
            total_related_addresses=1,
            total_transactions=1,
        )
        d = holder_analysis_to_dict(analysis)

        self.assertEqual(d["top_holders"][0]["pct_of_supply"], "0.25")
        self.assertEqual(d["related_addresses"]["R"]["total_in_amount"], "12.5")
        self.assertEqual(d["summary"]["total_transactions"], 1)
        self.assertEqual(d["groups"][0]["holders"], ["R", "S"])
        json.dumps(d)

    def test_write_json(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = write_json(trace_result_to_dict(_result()), os.path.join(tmp, "out"), "graph.json")
            with open(path, encoding="utf-8") as f:
                self.assertEqual(json.load(f)["call_count"], 4)


if __name__ == "__main__":
    unittest.main()
