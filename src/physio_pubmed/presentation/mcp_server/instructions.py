"""
MCP Server Instructions - usage guide for AI agents.
"""

from __future__ import annotations

SERVER_INSTRUCTIONS = """
Physio PubMed Search - physical-therapy literature search for AI agents

## Which tool?
- Specific clinical question  → search_pubmed(query=..., study_type="rct")
- Browse a practice area      → list_research_domains(), then
                                search_pubmed_by_domain(domain="neurological")
- What is getting attention   → get_trending_articles(days=90)

## search_pubmed tips
- Plain words ("knee pain exercise") are restricted to physical-therapy
  MeSH headings automatically.
- Queries with field tags are sent unchanged:
  '"Low Back Pain"[MeSH] AND "Exercise Therapy"[MeSH]'
- sort="most_cited" fetches citation counts; min_citations filters on them.
- Page with offset; max_results is at most 100.

## Reading results
Every article has quality.score (0-100), quality.evidenceLevel
(Systematic Review ... Case Study), quality.riskOfBias and
quality.applicabilityScore. These are heuristics from PubMed metadata,
not an appraisal of the full text.
"""
