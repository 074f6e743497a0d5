from fastapi import BackgroundTasks, HTTPException

from reviewflow.services.errors import WorkflowError
from reviewflow.services.notifications import NotificationEvent, Notifier, deliver_event


def http_error(e: WorkflowError) -> HTTPException:
    return HTTPException(status_code=e.status_code, detail=e.message)


def get_notifier(background_tasks: BackgroundTasks) -> Notifier:
    """Queue notification delivery to run after the response is sent."""

    def _notify(event: NotificationEvent):
        background_tasks.add_task(deliver_event, event)

    return _notify
