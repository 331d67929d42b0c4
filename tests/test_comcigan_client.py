from unittest.mock import patch

import pytest

from slunch.errors import NotFoundError
from slunch.upstream.comcigan import ComciganClient, _PageKeys

KEYS = _PageKeys(
    route="36179?17384l",
    prefix="73629_",
    original="481",
    daily="147",
    teacher="446",
    subject="492",
)


def _week(daily, original=None, **extra):
    data = {
        "자료147": daily,
        "자료481": original if original is not None else daily,
        "자료446": ["", "김선생", "이수"],
        "자료492": ["", "국어", "_수학"],
        "분리": 100,
    }
    data.update(extra)
    return data


@pytest.fixture
def client():
    client = ComciganClient()
    client._keys = KEYS
    yield client
    client.close()


def _table(periods):
    """[grade][class][weekday] with index 0 unused at every level; grade 1, class 1, Monday."""
    return [[], [[], [[], periods]]]


class TestGetTimetable:
    def test_decodes_periods_and_masks_teachers(self, client):
        with patch.object(client, "_fetch_week", return_value=_week(_table([2, 101, 202]))):
            periods = client.get_timetable(41896, 1, 1, 1)

        assert [(p.subject, p.teacher, p.changed) for p in periods] == [
            ("국어", "김선*", False),
            ("수학", "이수", False),
        ]

    def test_marks_changed_period(self, client):
        data = _week(_table([2, 101, 202]), original=_table([2, 101, 101]))
        with patch.object(client, "_fetch_week", return_value=data):
            periods = client.get_timetable(41896, 1, 1, 1)

        assert periods[1].changed is True
        assert periods[1].original_subject == "국어"
        assert periods[1].original_teacher == "김선*"

    def test_unknown_class(self, client):
        with patch.object(client, "_fetch_week", return_value=_week(_table([1, 101]))):
            with pytest.raises(NotFoundError):
                client.get_timetable(41896, 3, 9, 1)


class TestGetClassList:
    def test_uses_class_counts(self, client):
        data = _week(_table([1, 101]), **{"학급수": [0, 2, 1, 0]})
        with patch.object(client, "_fetch_week", return_value=data) as fetch:
            class_list = client.get_class_list(41896)

        assert class_list == {1: [1, 2], 2: [1]}
        fetch.assert_called_once_with(41896, False)

    def test_falls_back_to_timetable_shape(self, client):
        daily = [[], [[], [[]], [[]]], [[], [[]]]]
        with patch.object(client, "_fetch_week", return_value=_week(daily)):
            assert client.get_class_list(41896) == {1: [1, 2], 2: [1]}

    def test_unknown_school(self, client):
        with patch.object(client, "_fetch_week", return_value={}):
            with pytest.raises(NotFoundError):
                client.get_class_list(1)
