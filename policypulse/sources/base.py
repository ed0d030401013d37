"""Data source interface for bill and analysis records."""

from typing import Protocol, runtime_checkable


@runtime_checkable
class AnalysisSource(Protocol):
    """Supplies raw bill and analysis JSON by bill id.

    Both methods return None when the record does not exist. Transport
    failures raise ``SourceUnavailableError``.
    """

    name: str

    async def fetch_bill(self, bill_id: str) -> dict | None:
        ...

    async def fetch_analysis(self, bill_id: str) -> dict | None:
        ...
