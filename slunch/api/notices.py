from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from slunch.api.deps import get_container, require_admin
from slunch.constants import ERROR_MESSAGES
from slunch.containers import AppContainer

router = APIRouter(prefix="/notifications", tags=["notices"])


class NoticeRequest(BaseModel):
    title: Optional[str] = None
    content: Optional[str] = None
    date: Optional[str] = None


class NoticeResponse(BaseModel):
    id: str
    title: str
    content: str
    date: str


@router.get("", response_model=List[NoticeResponse])
def list_notices(container: AppContainer = Depends(get_container)):
    """공지 목록 (최신순)"""
    return [notice.to_dict() for notice in container.notices.list()]


@router.post("", response_model=NoticeResponse, dependencies=[Depends(require_admin)])
def create_notice(body: NoticeRequest, container: AppContainer = Depends(get_container)):
    notice = container.notices.create(body.title, body.content, body.date)
    return notice.to_dict()


@router.put("/{notice_id}", response_model=NoticeResponse, dependencies=[Depends(require_admin)])
def update_notice(
    notice_id: str,
    body: NoticeRequest,
    container: AppContainer = Depends(get_container),
):
    notice = container.notices.update(notice_id, body.title, body.content, body.date)
    return notice.to_dict()


@router.delete("/{notice_id}", dependencies=[Depends(require_admin)])
def delete_notice(notice_id: str, container: AppContainer = Depends(get_container)):
    container.notices.delete(notice_id)
    return {"message": f"공지 {notice_id}가 삭제되었습니다."}


@router.delete("", dependencies=[Depends(require_admin)])
def clear_notices(container: AppContainer = Depends(get_container)):
    removed = container.notices.clear()
    return {"message": ERROR_MESSAGES["NOTICES_CLEARED"], "deleted": removed}
