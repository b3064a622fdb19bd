"""
API server package: HTTP interface of the analysis service.

Exposes analyze-or-fetch by document id and word cloud retrieval; delegates
all work to the AnalysisService built at startup.
"""
