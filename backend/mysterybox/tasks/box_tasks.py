import logging
import uuid

from .celery_app import celery_app

logger = logging.getLogger(__name__)


@celery_app.task(bind=True, max_retries=3, default_retry_delay=60)
def expire_overdue_boxes(self, batch_size: int | None = None, request_id: str | None = None):
    """Periodic task: move PURCHASED boxes past expires_at to EXPIRED."""
    from ..components.boxes.reaper import expire_overdue
    from ..platform.database import SessionLocal
    from ..platform.request_context import reset_request_id, set_request_id

    token = set_request_id(request_id or f"reaper-{uuid.uuid4()}")
    db = SessionLocal()
    try:
        count = expire_overdue(db, batch_size=batch_size)
        return {"success": True, "expired": count}
    except Exception as exc:
        logger.exception("Expiry reaper run failed")
        raise self.retry(exc=exc)
    finally:
        db.close()
        reset_request_id(token)
