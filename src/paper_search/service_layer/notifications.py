"""Decide which host change notifications invalidate cached library indexes."""

from __future__ import annotations

from paper_search.config import Settings


def should_invalidate(event: object, object_type: object, settings: Settings) -> bool:
    """Return True when ``event`` on ``object_type`` may change indexed content.

    Args:
        event: Notifier event name such as ``add`` or ``trash``
        object_type: Notifier object type such as ``item`` or ``collection``
        settings: Source of the configured type and event lists

    Returns:
        True when both the type and the event are configured to invalidate
    """
    if not isinstance(event, str) or not isinstance(object_type, str):
        return False
    return (
        object_type.strip().lower() in settings.get_invalidate_types()
        and event.strip().lower() in settings.get_invalidate_events()
    )
