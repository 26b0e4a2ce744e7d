from .profile_record import ProfileRecord
from .processing_settings import ProcessingSettings
from .commands import ProcessDataCommand, ProcessSheetsCommand, TestConnectionCommand, command_adapter
from .events import StatusEvent, ProgressEvent, CompleteEvent, ErrorEvent, TestResultEvent
from .image_result import ImageFill, PlaceholderFill
from .connection_report import ConnectionDiagnostic, StrategyAttempt

__all__ = [
    "ProfileRecord",
    "ProcessingSettings",
    "ProcessDataCommand",
    "ProcessSheetsCommand",
    "TestConnectionCommand",
    "command_adapter",
    "StatusEvent",
    "ProgressEvent",
    "CompleteEvent",
    "ErrorEvent",
    "TestResultEvent",
    "ImageFill",
    "PlaceholderFill",
    "ConnectionDiagnostic",
    "StrategyAttempt",
]
