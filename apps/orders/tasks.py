import logging

from celery import shared_task

from . import services

log = logging.getLogger(__name__)


@shared_task
def delete_completed_order(deletion_id: str):
    """Countdown task queued when an order reaches ``completed``."""
    return services.run_deletion_safely(deletion_id)


@shared_task
def sweep_order_deletions():
    """Beat task: run every scheduled deletion whose deadline has passed, then prune old finished rows."""
    processed = services.run_due_deletions()
    pruned = services.prune_finished_deletions()
    if processed or pruned:
        log.info("Swept %s due order deletions, pruned %s finished", processed, pruned)
    return {"processed": processed, "pruned": pruned}
