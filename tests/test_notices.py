import pytest

from slunch.errors import NotFoundError, ValidationError
from slunch.services.notices import NoticeStore


@pytest.fixture
def notices(store):
    return NoticeStore(store)


class TestNoticeStore:
    def test_create_assigns_id(self, notices):
        notice = notices.create("점검 안내", "서버 점검이 있어요.", "2025-03-08T05:52:06.583Z")
        assert notice.id
        assert notices.list()[0].to_dict() == notice.to_dict()

    def test_list_newest_first(self, notices):
        notices.create("old", "a", "2025-03-01")
        notices.create("new", "b", "2025-03-08T09:00:00+09:00")
        notices.create("mid", "c", "2025-03-05T00:00:00Z")

        assert [n.title for n in notices.list()] == ["new", "mid", "old"]

    @pytest.mark.parametrize(
        "title,content,date,message",
        [
            ("", "c", "2025-03-01", "제목을 입력해주세요."),
            ("t", None, "2025-03-01", "내용을 입력해주세요."),
            ("t", "c", " ", "날짜를 입력해주세요."),
            ("t", "c", "next friday", "날짜 형식이 올바르지 않아요."),
        ],
    )
    def test_validation(self, notices, title, content, date, message):
        with pytest.raises(ValidationError) as excinfo:
            notices.create(title, content, date)
        assert excinfo.value.message == message

    def test_update_replaces_fields(self, notices):
        notice = notices.create("t", "c", "2025-03-01")
        updated = notices.update(notice.id, "t2", "c2", "2025-03-02")

        assert updated.id == notice.id
        assert [n.title for n in notices.list()] == ["t2"]

    def test_update_and_delete_unknown(self, notices):
        with pytest.raises(NotFoundError):
            notices.update("nope", "t", "c", "2025-03-01")
        with pytest.raises(NotFoundError):
            notices.delete("nope")

    def test_delete_and_clear(self, notices):
        first = notices.create("a", "a", "2025-03-01")
        notices.create("b", "b", "2025-03-02")
        notices.create("c", "c", "2025-03-03")

        notices.delete(first.id)
        assert len(notices.list()) == 2
        assert notices.clear() == 2
        assert notices.list() == []
