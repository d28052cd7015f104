import json
import logging
from typing import Any, Literal

from tavily import TavilyClient

from app.config import tavily_api_key
from app.services.errors import MissingCredentialError

LOGGER = logging.getLogger(__name__)

SearchDepth = Literal["basic", "advanced"]

SEARCH_MAX_RESULTS = 5
TACTICAL_FACT_LIMIT = 3
TACTICAL_FACT_CHARS = 150
PREFETCH_FINDINGS_PER_QUERY = 3
PREFETCH_FINDING_CHARS = 200
COMPETITOR_LIMIT = 5
COMPETITOR_DESCRIPTION_CHARS = 200

# Appended to the founder's claim to steer the search toward checkable facts.
TACTICAL_QUERY_SUFFIXES = {
    "reality_check": "competitors alternatives similar companies",
    "math_check": "CAC LTV industry benchmarks average",
    "bs_detector": "technology real implementation vs buzzword",
}

PREFETCH_QUERY_SUFFIXES = (
    "competitors market analysis",
    "market size TAM SAM",
    "industry trends 2024 2025",
)


class FactLookup:
    """Tavily-backed fact lookup used during and before a pitch."""

    def __init__(self, client: TavilyClient | None = None) -> None:
        self._client = client

    def search(self, query: str, depth: SearchDepth = "basic") -> list[dict[str, Any]]:
        response = self._get_client().search(
            query=query,
            search_depth=depth,
            include_answer=True,
            max_results=SEARCH_MAX_RESULTS,
        )
        results = []
        for item in (response or {}).get("results", []) or []:
            results.append(
                {
                    "title": str(item.get("title", "")),
                    "url": str(item.get("url", "")),
                    "content": str(item.get("content", "")),
                    "score": _to_float(item.get("score")),
                }
            )
        return results

    def tactical_fact_check(self, founder_claim: str, trigger_type: str) -> dict[str, Any]:
        """Look up facts for a live claim. Never raises; failure means no facts."""
        suffix = TACTICAL_QUERY_SUFFIXES.get(trigger_type)
        if suffix is None:
            return {"success": False, "query": "", "facts": [], "error": f"Unknown trigger type: {trigger_type}"}
        query = f"{founder_claim.strip()} {suffix}"
        try:
            results = self.search(query, "basic")
        except Exception as exc:  # external API protection
            LOGGER.warning("Tactical fact check failed for %s: %s", trigger_type, exc)
            return {"success": False, "query": query, "facts": [], "error": str(exc)}

        facts = [
            {
                "source": result["title"],
                "fact": result["content"][:TACTICAL_FACT_CHARS],
                "url": result["url"],
                "score": result["score"],
            }
            for result in results[:TACTICAL_FACT_LIMIT]
        ]
        return {"success": True, "query": query, "facts": facts, "error": None}

    def prefetch_market_context(self, pitch_context: str) -> str:
        """Run the pre-pitch industry scan and return it as a JSON string.

        Raises on search failure; the calling task decides what to do.
        """
        findings = []
        for suffix in PREFETCH_QUERY_SUFFIXES:
            query = f"{pitch_context.strip()} {suffix}"
            results = self.search(query, "basic")
            summary = "\n\n".join(
                f"{result['title']}: {result['content'][:PREFETCH_FINDING_CHARS]}..."
                for result in results[:PREFETCH_FINDINGS_PER_QUERY]
            )
            findings.append({"query": query, "findings": summary})
        return json.dumps(findings)

    def find_competitors(self, industry: str, product: str) -> dict[str, Any]:
        query = f"{product.strip()} {industry.strip()} competitors alternatives top companies"
        try:
            results = self.search(query, "advanced")
        except MissingCredentialError:
            raise
        except Exception as exc:  # external API protection
            LOGGER.warning("Competitor search failed: %s", exc)
            return {"success": False, "competitors": [], "error": str(exc)}

        competitors = [
            {
                "name": result["title"],
                "description": result["content"][:COMPETITOR_DESCRIPTION_CHARS],
                "url": result["url"],
                "relevance": result["score"],
            }
            for result in results[:COMPETITOR_LIMIT]
        ]
        return {"success": True, "competitors": competitors, "error": None}

    def _get_client(self) -> TavilyClient:
        if self._client is None:
            api_key = tavily_api_key()
            if not api_key:
                raise MissingCredentialError("TAVILY_API_KEY is not set.")
            self._client = TavilyClient(api_key=api_key)
        return self._client


fact_lookup = FactLookup()


def _to_float(value: object) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0
