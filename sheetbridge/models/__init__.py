"""Domain models for the sheet -> portal sync service.

Source file handles, parsed datasets, execution records and publish results.
"""

from .dataset import HomeDataset, LocationsDataset, ParsedDataset, SellersDataset
from .execution import ExecutionStatus, ProcessExecution, Trigger
from .processing_result import CycleResult, Destination, PublishOutcome
from .source_file import SourceFile, SourceVariant

__all__ = [
    # Source
    "SourceFile",
    "SourceVariant",
    # Datasets
    "HomeDataset",
    "LocationsDataset",
    "SellersDataset",
    "ParsedDataset",
    # Executions
    "ExecutionStatus",
    "ProcessExecution",
    "Trigger",
    # Results
    "CycleResult",
    "Destination",
    "PublishOutcome",
]
