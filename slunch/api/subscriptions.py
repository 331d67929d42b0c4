from typing import List, Optional, Union

from fastapi import APIRouter, Body, Depends, Query
from pydantic import BaseModel, ConfigDict, Field

from slunch.api.deps import get_container
from slunch.constants import ERROR_MESSAGES
from slunch.containers import AppContainer
from slunch.services.subscriptions import (
    KeywordSubscription,
    SubscriptionKind,
    TimetableSubscription,
)

router = APIRouter(prefix="/fcm", tags=["fcm"])


class MealSubscriptionRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    token: Optional[str] = None
    time: Optional[str] = None
    school_code: Optional[str] = Field(None, alias="schoolCode")
    region_code: Optional[str] = Field(None, alias="regionCode")


class KeywordSubscriptionRequest(MealSubscriptionRequest):
    keywords: Optional[Union[List[str], str]] = None


class TimetableSubscriptionRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    token: Optional[str] = None
    time: Optional[str] = None
    school_code: Optional[int] = Field(None, alias="schoolCode")
    grade: Optional[int] = None
    class_num: Optional[int] = Field(None, alias="class")


class TokenRequest(BaseModel):
    token: Optional[str] = None


def subscription_response(subscription) -> dict:
    if isinstance(subscription, TimetableSubscription):
        return {
            "token": subscription.token,
            "time": subscription.time,
            "schoolCode": subscription.school_code,
            "grade": subscription.grade,
            "class": subscription.class_num,
        }

    data = {
        "token": subscription.token,
        "time": subscription.time,
        "schoolCode": subscription.school_code,
        "regionCode": subscription.region_code,
    }
    if isinstance(subscription, KeywordSubscription):
        data["keywords"] = subscription.keywords
    return data


def _register(kind: SubscriptionKind, request_model):
    """GET/POST/PUT/DELETE on ``/fcm/{kind}``, all keyed by the device token."""

    @router.get(f"/{kind.value}", name=f"get_{kind.value}_subscription")
    def get_subscription(
        token: Optional[str] = Query(None),
        container: AppContainer = Depends(get_container),
    ):
        return subscription_response(container.subscriptions.get(kind, token))

    @router.post(f"/{kind.value}", name=f"create_{kind.value}_subscription")
    def create_subscription(
        body: request_model = Body(...),
        container: AppContainer = Depends(get_container),
    ):
        subscription = container.subscriptions.create(kind, **body.model_dump())
        return subscription_response(subscription)

    @router.put(f"/{kind.value}", name=f"update_{kind.value}_subscription")
    def update_subscription(
        body: request_model = Body(...),
        container: AppContainer = Depends(get_container),
    ):
        subscription = container.subscriptions.update(kind, **body.model_dump())
        return subscription_response(subscription)

    @router.delete(f"/{kind.value}", name=f"delete_{kind.value}_subscription")
    def delete_subscription(
        body: TokenRequest = Body(...),
        container: AppContainer = Depends(get_container),
    ):
        container.subscriptions.delete(kind, body.token)
        return {"message": ERROR_MESSAGES["TOKEN_DELETED"]}


_register(SubscriptionKind.meal, MealSubscriptionRequest)
_register(SubscriptionKind.keyword, KeywordSubscriptionRequest)
_register(SubscriptionKind.timetable, TimetableSubscriptionRequest)
