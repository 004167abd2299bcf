"""Recording of analog state variables."""

from htneuron.recording.data_logger import DataLogger, RecordablesMap

__all__ = ["DataLogger", "RecordablesMap"]
