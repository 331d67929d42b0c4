import pytest

from slunch.parser import (
    allergy_label,
    format_date,
    merge_schedules,
    parse_calorie,
    parse_meal,
    parse_meal_item,
    parse_nutrition,
    parse_origins,
    split_items,
)


class TestSplitItems:
    def test_drops_blank_segments(self):
        assert split_items("쌀밥<br/> <br/>김치<br/>") == ["쌀밥", "김치"]

    def test_empty(self):
        assert split_items("") == []
        assert split_items(None) == []


class TestParseMealItem:
    def test_with_allergy_codes(self):
        item = parse_meal_item("쇠고기미역국 (5.6.16)")
        assert item.food == "쇠고기미역국"
        assert [a.code for a in item.allergy] == ["5", "6", "16"]
        assert [a.type for a in item.allergy] == ["대두", "밀", "쇠고기"]

    def test_without_allergy_codes(self):
        item = parse_meal_item("쌀밥")
        assert item.food == "쌀밥"
        assert item.allergy == []

    def test_unknown_code_maps_to_empty_label(self):
        item = parse_meal_item("특식 (99)")
        assert item.allergy[0].code == "99"
        assert item.allergy[0].type == ""

    def test_allergy_label_non_numeric(self):
        assert allergy_label("x") == ""


class TestParseOriginsAndNutrition:
    def test_origins_drop_remarks_row(self):
        origins = parse_origins("쌀 : 국내산<br/>쇠고기(종류) : 국내산(한우)<br/>비고 : ")
        assert [(o.food, o.origin) for o in origins] == [
            ("쌀", "국내산"),
            ("쇠고기(종류)", "국내산(한우)"),
        ]

    @pytest.mark.parametrize("remarks", ["비고 : ", "비고 :", "비고:", "비고 : 없음"])
    def test_remarks_row_dropped_in_any_spacing(self, remarks):
        origins = parse_origins(f"쌀 : 국내산<br/>{remarks}")
        assert [o.food for o in origins] == ["쌀"]

    def test_missing_second_half_is_empty_string(self):
        origins = parse_origins("김치")
        assert origins[0].food == "김치"
        assert origins[0].origin == ""

    def test_nutrition(self):
        nutrition = parse_nutrition("탄수화물(g) : 147.4<br/>단백질(g) : 35.2")
        assert [(n.type, n.amount) for n in nutrition] == [
            ("탄수화물(g)", "147.4"),
            ("단백질(g)", "35.2"),
        ]

    def test_calorie_strips_unit(self):
        assert parse_calorie("812.3 Kcal") == "812.3"
        assert parse_calorie("") == ""


class TestParseMeal:
    def test_full_row(self):
        row = {
            "MLSV_YMD": "20250310",
            "DDISH_NM": "쌀밥<br/>미역국 (5.6)",
            "MMEAL_SC_NM": "중식",
            "ORPLC_INFO": "쌀 : 국내산<br/>비고 : ",
            "CAL_INFO": "650.2 Kcal",
            "NTR_INFO": "탄수화물(g) : 90.1",
        }
        record = parse_meal(row, "7010908", "B10")
        assert record.date == "2025-03-10"
        assert record.foods == ["쌀밥", "미역국"]
        assert record.type == "중식"
        assert [(o.food, o.origin) for o in record.origin] == [("쌀", "국내산")]
        assert record.calorie == "650.2"
        assert record.school_code == "7010908"
        assert record.region_code == "B10"

    def test_missing_fields_normalize_to_empty(self):
        record = parse_meal({"MLSV_YMD": "20250310"}, "S", "R")
        assert record.meal == []
        assert record.origin == []
        assert record.nutrition == []
        assert record.type == ""
        assert record.calorie == ""

    def test_format_date(self):
        assert format_date("20250310") == "2025-03-10"
        assert format_date("2025-03-10") == "2025-03-10"


class TestMergeSchedules:
    def test_consecutive_identical_labels_merge(self):
        rows = [
            {"AA_YMD": "20250303", "EVENT_NM": "중간고사"},
            {"AA_YMD": "20250304", "EVENT_NM": "중간고사"},
            {"AA_YMD": "20250305", "EVENT_NM": "체육대회"},
        ]
        merged = merge_schedules(rows)
        assert [item.to_dict() for item in merged] == [
            {"schedule": "중간고사", "date": {"start": "2025-03-03", "end": "2025-03-04"}},
            {"schedule": "체육대회", "date": {"start": "2025-03-05", "end": "2025-03-05"}},
        ]

    def test_same_day_events_joined(self):
        rows = [
            {"AA_YMD": "20250303", "EVENT_NM": "입학식"},
            {"AA_YMD": "20250303", "EVENT_NM": "개학식"},
        ]
        assert merge_schedules(rows)[0].schedule == "입학식, 개학식"

    def test_saturday_closure_dropped_and_sorted(self):
        rows = [
            {"AA_YMD": "20250310", "EVENT_NM": "개교기념일"},
            {"AA_YMD": "20250308", "EVENT_NM": "토요휴업일"},
            {"AA_YMD": "20250303", "EVENT_NM": "개학식"},
        ]
        merged = merge_schedules(rows)
        assert [item.schedule for item in merged] == ["개학식", "개교기념일"]
        assert all(a.schedule != b.schedule for a, b in zip(merged, merged[1:]))
