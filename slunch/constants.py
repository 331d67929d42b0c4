ALLERGY_TYPES = {
    1: "난류",
    2: "우유",
    3: "메밀",
    4: "땅콩",
    5: "대두",
    6: "밀",
    7: "고등어",
    8: "게",
    9: "새우",
    10: "돼지고기",
    11: "복숭아",
    12: "토마토",
    13: "아황산류",
    14: "호두",
    15: "닭고기",
    16: "쇠고기",
    17: "오징어",
    18: "조개류(굴, 전복, 홍합 포함)",
    19: "잣",
}

ERROR_MESSAGES = {
    "SCHOOL_NAME_REQUIRED": "학교 이름을 입력해주세요.",
    "SCHOOL_CODE_REQUIRED": "학교 코드를 입력해주세요.",
    "REGION_CODE_REQUIRED": "지역 코드를 입력해주세요.",
    "YEAR_REQUIRED": "년도를 입력해주세요.",
    "MONTH_REQUIRED": "월을 입력해주세요.",
    "GRADE_REQUIRED": "학년을 입력해주세요.",
    "CLASS_REQUIRED": "반을 입력해주세요.",
    "TOKEN_REQUIRED": "토큰을 입력해주세요.",
    "TIME_REQUIRED": "알림 시간을 입력해주세요.",
    "KEYWORDS_REQUIRED": "알림 받을 키워드를 입력해주세요.",
    "INVALID_DATE": "날짜 형식이 올바르지 않아요.",
    "NO_DATA": "해당하는 데이터가 없습니다.",
    "SCHOOL_NOT_FOUND": "학교를 찾을 수 없어요.",
    "TIMETABLE_NOT_FOUND": "시간표를 찾을 수 없어요.",
    "TOKEN_NOT_FOUND": "토큰을 찾을 수 없어요.",
    "TOKEN_ALREADY_EXISTS": "이미 존재하는 토큰이에요.",
    "UPSTREAM_UNAVAILABLE": "데이터 제공 서버에 연결할 수 없어요. 잠시 후 다시 시도해주세요.",
    "UNKNOWN_ERROR": "알 수 없는 오류가 발생했어요.",
    "UNAUTHORIZED": "권한이 없습니다.",
    "INVALID_TIME_FORMAT": "알림 시간은 HH:MM 형식이어야 해요.",
    "INVALID_TIME_HOUR": "시간은 0~23 사이여야 해요.",
    "INVALID_TIME_MINUTE": "분은 0~59 사이여야 해요.",
    "TOKEN_DELETED": "토큰이 삭제되었어요.",
    "TITLE_REQUIRED": "제목을 입력해주세요.",
    "CONTENT_REQUIRED": "내용을 입력해주세요.",
    "DATE_REQUIRED": "날짜를 입력해주세요.",
    "NOTICE_NOT_FOUND": "공지를 찾을 수 없어요.",
    "NOTICES_CLEARED": "모든 공지가 삭제되었습니다.",
}


class Collections:
    MEAL = "meal"
    SCHEDULE = "schedule"
    SCHOOL = "school"
    SCHOOL_ACCESS = "school_access"
    FCM_MEAL = "fcm_meal"
    FCM_TIMETABLE = "fcm_timetable"
    FCM_KEYWORD = "fcm_keyword"
    NOTICE = "notices"


# NEIS upstream markers
NEIS_NO_DATA_CODE = "INFO-200"
NEIS_OK_CODE = "INFO-000"
ITEM_DELIMITER = "<br/>"
ORIGIN_REMARKS = "비고"
CALORIE_UNIT = "Kcal"
SATURDAY_HOLIDAY = "토요휴업일"
ELEMENTARY_SCHOOL = "초등학교"

# Annotates a meal type served from stale cache after an upstream failure
STALE_TYPE_SUFFIX = " (이전 데이터)"

# Separator between dish names in push notification bodies
MEAL_TEXT_SEPARATOR = " / "
