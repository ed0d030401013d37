"""Bill and analysis data sources.

- AnalysisSource: the protocol the export controller depends on
- StaticAnalysisSource: in-memory / JSON file records
- ApiAnalysisSource: REST backend with retry and circuit breaking
"""

from policypulse.sources.api import ApiAnalysisSource, unwrap_analysis
from policypulse.sources.base import AnalysisSource
from policypulse.sources.static import StaticAnalysisSource

__all__ = [
    "AnalysisSource",
    "ApiAnalysisSource",
    "StaticAnalysisSource",
    "unwrap_analysis",
]
