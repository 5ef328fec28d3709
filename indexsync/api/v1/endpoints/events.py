"""Receiver for CMS lifecycle webhooks."""

from fastapi import APIRouter, BackgroundTasks, Depends

from indexsync import schemas
from indexsync.api import deps
from indexsync.core.logging import ContextualLogger
from indexsync.platform.events.bus import LifecycleEventBus
from indexsync.schemas.events import EVENT_ACTIONS

router = APIRouter()


@router.post("/cms", status_code=202, dependencies=[Depends(deps.verify_webhook_token)])
async def receive_cms_event(
    payload: schemas.CMSWebhookPayload,
    background_tasks: BackgroundTasks,
    event_bus: LifecycleEventBus = Depends(deps.get_event_bus),
    logger: ContextualLogger = Depends(deps.get_logger),
) -> dict:
    """Accept a CMS lifecycle webhook and hand it to the subscribed collections.

    Events other than entry create/update/delete/publish/unpublish are ignored.
    """
    action = EVENT_ACTIONS.get(payload.event)
    if action is None:
        logger.debug(f"Ignoring CMS event {payload.event}")
        return {"accepted": False}

    event = schemas.LifecycleEvent(entity=payload.entity, action=action, record=payload.entry)
    background_tasks.add_task(event_bus.publish, event)
    logger.debug(f"Queued {action.value} on {event.entity}")
    return {"accepted": True}
