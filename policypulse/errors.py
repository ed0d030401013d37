"""Exception taxonomy for the export pipeline.

Partial data is never an error: the normalizer absorbs missing fields and
every profile still carries all six categories. The exceptions below cover
the cases that change what the export produces.
"""


class ExportError(Exception):
    """Base class for export pipeline failures."""


class InputUnavailableError(ExportError):
    """No bill or analysis data could be obtained for the export.

    Raised before any rendering surface is acquired, so no partial file
    is ever written.
    """


class ChartRenderingError(ExportError):
    """A chart renderer could not produce a raster snapshot.

    Recovered locally: the chart section is omitted from the report.

    Attributes:
        chart_id: Identifier of the chart that failed.
    """

    def __init__(self, chart_id: str, reason: str):
        self.chart_id = chart_id
        super().__init__(f"Chart '{chart_id}' could not be rendered: {reason}")


class CompositionError(ExportError):
    """Unrecoverable failure while composing, paginating, or writing the document."""


class ExportInProgressError(ExportError):
    """An export was started on a controller that is already busy."""


class SourceUnavailableError(ExportError):
    """The analysis data source could not be reached.

    Attributes:
        source_name: The data source that failed.
    """

    def __init__(self, source_name: str, reason: str):
        self.source_name = source_name
        super().__init__(f"Data source '{source_name}' unavailable: {reason}")
