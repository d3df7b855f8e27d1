"""
Middleware for EventBus

Middleware = pipeline functions that process events before handlers.
Can modify events, block events, or log/validate events.
"""

from portfolio_motion.models.enums import LogCategory
from portfolio_motion.models.events import Event
from portfolio_motion.utils.logger import get_logger

log = get_logger().for_category(LogCategory.EVENT)


def log_middleware(event: Event) -> Event:
    """
    Log all events for debugging

    Usage:
        event_bus.add_middleware(log_middleware)
    """
    source_str = event.source.name if event.source else None
    log.info(f"Event: {event.type.name} from {source_str} | {event.to_data()}")
    return event
