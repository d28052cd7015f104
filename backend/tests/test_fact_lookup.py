import json
import unittest

try:
    from app.services.errors import MissingCredentialError
    from app.services.fact_lookup import FactLookup

    DEPENDENCIES_AVAILABLE = True
except ModuleNotFoundError:  # pragma: no cover - environment dependent
    DEPENDENCIES_AVAILABLE = False
    MissingCredentialError = Exception
    FactLookup = None


class FakeTavilyClient:
    def __init__(self, results=None, error: Exception | None = None) -> None:
        self.results = results or []
        self.error = error
        self.queries = []

    def search(self, **kwargs):
        self.queries.append(kwargs)
        if self.error is not None:
            raise self.error
        return {"answer": "n/a", "results": self.results}


def tavily_results(count: int) -> list[dict]:
    return [
        {
            "title": f"Source {index}",
            "url": f"https://example.com/{index}",
            "content": "x" * 400,
            "score": 0.9 - index / 10,
        }
        for index in range(count)
    ]


@unittest.skipUnless(DEPENDENCIES_AVAILABLE, "tavily dependencies are not installed")
class FactLookupTests(unittest.TestCase):
    def test_tactical_fact_check_trims_results(self) -> None:
        client = FakeTavilyClient(tavily_results(5))
        result = FactLookup(client=client).tactical_fact_check("we have no competitors", "reality_check")

        self.assertTrue(result["success"])
        self.assertEqual(result["query"], "we have no competitors competitors alternatives similar companies")
        self.assertEqual(len(result["facts"]), 3)
        self.assertEqual(len(result["facts"][0]["fact"]), 150)
        self.assertEqual(result["facts"][0]["source"], "Source 0")
        self.assertEqual(client.queries[0]["search_depth"], "basic")
        self.assertTrue(client.queries[0]["include_answer"])

    def test_query_suffix_per_category(self) -> None:
        client = FakeTavilyClient(tavily_results(1))
        lookup = FactLookup(client=client)
        lookup.tactical_fact_check("burn rate", "math_check")
        lookup.tactical_fact_check("our AI", "bs_detector")
        self.assertTrue(client.queries[0]["query"].endswith("CAC LTV industry benchmarks average"))
        self.assertTrue(client.queries[1]["query"].endswith("technology real implementation vs buzzword"))

    def test_tactical_fact_check_never_raises(self) -> None:
        client = FakeTavilyClient(error=ConnectionError("timeout"))
        result = FactLookup(client=client).tactical_fact_check("runway", "math_check")
        self.assertFalse(result["success"])
        self.assertEqual(result["facts"], [])
        self.assertIn("timeout", result["error"])

    def test_missing_key_is_a_failed_lookup(self) -> None:
        result = FactLookup().tactical_fact_check("runway", "math_check")
        self.assertFalse(result["success"])
        self.assertIn("TAVILY_API_KEY", result["error"])

    def test_search_without_key_raises(self) -> None:
        with self.assertRaises(MissingCredentialError):
            FactLookup().search("anything")

    def test_prefetch_market_context(self) -> None:
        client = FakeTavilyClient(tavily_results(4))
        context = json.loads(FactLookup(client=client).prefetch_market_context("Payroll for clinics"))

        self.assertEqual(len(client.queries), 3)
        self.assertEqual(len(context), 3)
        self.assertEqual(context[0]["query"], "Payroll for clinics competitors market analysis")
        self.assertEqual(context[0]["findings"].count("Source"), 3)
        self.assertIn("x" * 200 + "...", context[0]["findings"])

    def test_find_competitors(self) -> None:
        client = FakeTavilyClient(tavily_results(7))
        result = FactLookup(client=client).find_competitors("HR tech", "clinic payroll")

        self.assertTrue(result["success"])
        self.assertEqual(len(result["competitors"]), 5)
        self.assertEqual(len(result["competitors"][0]["description"]), 200)
        self.assertEqual(client.queries[0]["search_depth"], "advanced")

    def test_find_competitors_reports_search_failure(self) -> None:
        client = FakeTavilyClient(error=RuntimeError("quota exceeded"))
        result = FactLookup(client=client).find_competitors("HR tech", "clinic payroll")
        self.assertFalse(result["success"])
        self.assertEqual(result["competitors"], [])


if __name__ == "__main__":
    unittest.main()
