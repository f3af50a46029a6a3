# anomaly_processor/exceptions.py
"""
Exception Types

Structural failures raised by the anomaly processing pipeline. Value-level
misses (a year past the last climate period, an anomaly above the top
category) are not exceptions; they surface as missing labels.
"""

from typing import Sequence


class AnomalyProcessorError(Exception):
    """Base class for all pipeline errors."""


class SchemaMismatchError(AnomalyProcessorError):
    """A raw table is missing the Year column or one of the month columns."""

    def __init__(self, table_name: str, missing: Sequence[str]):
        self.table_name = table_name
        self.missing = list(missing)
        super().__init__(
            f"{table_name} is missing expected columns: {', '.join(self.missing)}"
        )


class RetrievalError(AnomalyProcessorError):
    """A source table could not be downloaded, read or parsed."""


class PipelineError(AnomalyProcessorError):
    """
    A region failed at a named stage of the pipeline.

    Attributes:
        region: Region key (GLB, NH or SH)
        stage: Stage name (fetch, validate, reshape, classify or combine)
        cause: The underlying error or a description of it
    """

    def __init__(self, region: str, stage: str, cause: object):
        self.region = region
        self.stage = stage
        self.cause = cause
        super().__init__(f"{region} failed during {stage}: {cause}")
