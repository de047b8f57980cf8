"""Core data structures for eventgraph."""

from eventgraph.models.config import EventGraphConfig
from eventgraph.models.resources import (
    Broker,
    Channel,
    ChannelReference,
    CloudEventOverrides,
    DeliverySpec,
    Destination,
    EventAttributeDefinition,
    EventType,
    KReference,
    ResourceDecodeError,
    Source,
    Subscription,
    Trigger,
    TriggerFilter,
)

__all__ = [
    "Broker",
    "Channel",
    "ChannelReference",
    "CloudEventOverrides",
    "DeliverySpec",
    "Destination",
    "EventAttributeDefinition",
    "EventGraphConfig",
    "EventType",
    "KReference",
    "ResourceDecodeError",
    "Source",
    "Subscription",
    "Trigger",
    "TriggerFilter",
]
