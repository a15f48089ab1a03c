from .events import AnalyticsEventService, serialize_event

__all__ = ["AnalyticsEventService", "serialize_event"]
