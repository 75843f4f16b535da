"""
SERP Competitor Analyzer

Competitive search analysis for a target domain:
1. Resolves keyword rankings via the Google Custom Search API
2. Aggregates competitor share of voice and relevance
3. Identifies ranking opportunities and a competitiveness score
4. Persists results for polling and per-keyword reverification
"""

__version__ = "1.0.0"
