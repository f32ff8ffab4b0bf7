"""
Handler for reference list changes made from the console.

Drops the cached slot so the next dropdown load refetches it. A deleted
customer also loses its cached outstanding invoices.
"""

import logging
from typing import Callable

from core.events import ReferenceDataChanged

logger = logging.getLogger(__name__)


def handle_reference_changed(reference_service) -> Callable:
    """
    Factory that returns a reference slot invalidation handler.

    Args:
        reference_service: ReferenceDataService instance

    Returns:
        Handler callable for ReferenceDataChanged
    """

    def handler(event: ReferenceDataChanged):
        reference_service.invalidate(event.kind)
        if event.kind == "customers" and event.action == "delete":
            reference_service.invalidate_outstanding(event.item_id)
        logger.info(f"Reference {event.kind} changed ({event.action} {event.item_id}); cache dropped")

    return handler
