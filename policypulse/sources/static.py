"""In-memory analysis source, optionally loaded from a JSON file.

File format::

    {
      "bills": {"HB 12": {"title": "...", "status": "..."}},
      "analyses": {"HB 12": {"summary": "...", ...}}
    }

An ``analyses`` entry may also be the REST envelope ``{"analyses": [...]}``;
the first analysis in it is used, as with the API source.
"""

import copy
import json
import logging
from pathlib import Path

from policypulse.sources.api import unwrap_analysis

logger = logging.getLogger(__name__)


class StaticAnalysisSource:
    """Serves records from dicts keyed by bill id. Returned records are copies."""

    name = "static"

    def __init__(self, bills: dict | None = None, analyses: dict | None = None):
        self._bills = {str(k): v for k, v in (bills or {}).items()}
        self._analyses = {str(k): v for k, v in (analyses or {}).items()}

    @classmethod
    def from_file(cls, path: Path | str) -> "StaticAnalysisSource":
        """Load a source from a JSON file.

        Raises:
            ValueError: If the file is not a JSON object with dict sections.
        """
        path = Path(path)
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"{path} must contain a JSON object")
        bills = data.get("bills", {})
        analyses = data.get("analyses", {})
        if not isinstance(bills, dict) or not isinstance(analyses, dict):
            raise ValueError(f"{path}: 'bills' and 'analyses' must be objects keyed by bill id")
        logger.info("Loaded %d bills and %d analyses from %s", len(bills), len(analyses), path)
        return cls(bills=bills, analyses=analyses)

    async def fetch_bill(self, bill_id: str) -> dict | None:
        record = self._bills.get(str(bill_id))
        return copy.deepcopy(record) if record is not None else None

    async def fetch_analysis(self, bill_id: str) -> dict | None:
        record = self._analyses.get(str(bill_id))
        if record is None:
            return None
        return unwrap_analysis(copy.deepcopy(record))
