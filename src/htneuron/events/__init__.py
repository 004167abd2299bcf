"""
Event Protocol.

Typed, delay-annotated notifications exchanged between entities.
"""

from htneuron.events.event import (
    ConductancePayload,
    CurrentPayload,
    DataLoggingReplyPayload,
    DataLoggingRequestPayload,
    DoubleDataPayload,
    Event,
    EventKind,
    Payload,
    RatePayload,
    ReplyItem,
    SpikePayload,
    conductance_event,
    current_event,
    data_logging_reply,
    data_logging_request,
    double_data_event,
    make_event,
    rate_event,
    spike_event,
)

__all__ = [
    "Event",
    "EventKind",
    "Payload",
    "SpikePayload",
    "CurrentPayload",
    "ConductancePayload",
    "RatePayload",
    "DataLoggingRequestPayload",
    "DataLoggingReplyPayload",
    "DoubleDataPayload",
    "ReplyItem",
    "make_event",
    "spike_event",
    "current_event",
    "conductance_event",
    "rate_event",
    "data_logging_request",
    "data_logging_reply",
    "double_data_event",
]
