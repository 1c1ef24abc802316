"""Activity log endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from grocery.api.dependencies import EditorAccess, ViewerAccess, get_activity_service
from grocery.schemas.activity import ActivityCreate, ActivityPage, ActivityResponse
from grocery.schemas.common import Envelope
from grocery.services import realtime
from grocery.services.activity import ActivityService, to_response
from grocery.services.realtime import ListEventType

router = APIRouter(prefix="/api/lists/{list_id}/activities", tags=["activities"])

ActivityServiceDep = Annotated[ActivityService, Depends(get_activity_service)]


@router.get("", response_model=Envelope[ActivityPage])
async def get_activities(
    access: ViewerAccess,
    service: ActivityServiceDep,
    limit: Annotated[int, Query(ge=1, le=200)] = 50,
    offset: Annotated[int, Query(ge=0)] = 0,
):
    """Get a page of the list's activity, newest first."""
    activities, total = service.list_activities(access, limit, offset)
    return Envelope(
        data=ActivityPage(
            activities=[to_response(activity) for activity in activities],
            total=total,
            limit=limit,
            offset=offset,
        )
    )


@router.post(
    "", response_model=Envelope[ActivityResponse], status_code=status.HTTP_201_CREATED
)
async def create_activity(
    activity_data: ActivityCreate, access: EditorAccess, service: ActivityServiceDep
):
    """Record an activity reported by a client."""
    activity = service.record(access, activity_data.action, activity_data.details)
    realtime.publish_list_event(
        access.list_id, ListEventType.ACTIVITY_CREATED, {"id": str(activity.id)}
    )
    return Envelope(data=to_response(activity), message="Activity recorded")
