"""Tests for the calendar model — creation, validation, status edits."""

import pytest

from safetyboard.models.calendar import (
    DayRecord,
    DayStatus,
    MonthRecord,
    create_year,
    cycle_status,
    decode_calendar,
    days_in_month,
    encode_calendar,
    get_status,
    parse_status,
    set_status,
    validate_calendar,
)


# =====================================================================
# create_year
# =====================================================================


class TestCreateYear:
    def test_leap_year_february(self) -> None:
        assert len(create_year(2028)[1].days) == 29

    def test_common_year_february(self) -> None:
        assert len(create_year(2026)[1].days) == 28

    def test_twelve_months_all_unset(self) -> None:
        cal = create_year(2026)
        assert len(cal) == 12
        assert [m.month for m in cal] == list(range(12))
        assert all(m.year == 2026 for m in cal)
        assert all(d.status == DayStatus.UNSET for m in cal for d in m.days)

    def test_day_counts_match_calendar(self) -> None:
        cal = create_year(2026)
        assert [len(m.days) for m in cal] == [31, 28, 31, 30, 31, 30, 31, 31, 30, 31, 30, 31]

    def test_days_numbered_from_one(self) -> None:
        march = create_year(2026)[2]
        assert march.days[0].day == 1
        assert march.days[-1].day == 31

    def test_century_rule(self) -> None:
        assert days_in_month(2100, 1) == 28
        assert days_in_month(2000, 1) == 29


# =====================================================================
# validate_calendar
# =====================================================================


class TestValidateCalendar:
    def test_accepts_create_year_output(self) -> None:
        assert validate_calendar(create_year(2026), 2026)

    def test_accepts_encoded_form(self) -> None:
        assert validate_calendar(encode_calendar(create_year(2028)), 2028)

    def test_rejects_eleven_months(self) -> None:
        assert not validate_calendar(create_year(2026)[:11], 2026)

    def test_rejects_wrong_year_on_one_month(self) -> None:
        data = encode_calendar(create_year(2026))
        data[3]["year"] = 2025
        assert not validate_calendar(data, 2026)

    def test_rejects_calendar_for_other_year(self) -> None:
        assert not validate_calendar(create_year(2027), 2026)

    def test_rejects_shuffled_month_index(self) -> None:
        data = encode_calendar(create_year(2026))
        data[0]["month"], data[1]["month"] = 1, 0
        assert not validate_calendar(data, 2026)

    def test_rejects_wrong_day_count(self) -> None:
        # A leap-year February stored under a common year
        data = encode_calendar(create_year(2026))
        data[1]["days"].append({"day": 29, "status": None})
        assert not validate_calendar(data, 2026)

    def test_rejects_unknown_status(self) -> None:
        data = encode_calendar(create_year(2026))
        data[5]["days"][3]["status"] = "on_fire"
        assert not validate_calendar(data, 2026)

    def test_rejects_boolean_month_field(self) -> None:
        data = encode_calendar(create_year(2026))
        data[1]["month"] = True
        assert not validate_calendar(data, 2026)

    @pytest.mark.parametrize("candidate", [None, {}, "calendar", 12, [None] * 12])
    def test_rejects_non_calendar_values(self, candidate: object) -> None:
        assert not validate_calendar(candidate, 2026)


# =====================================================================
# Encoding
# =====================================================================


class TestEncoding:
    def test_unset_written_as_null(self) -> None:
        cal = set_status(create_year(2026), 0, 1, DayStatus.SAFE)
        data = encode_calendar(cal)
        assert data[0]["days"][0] == {"day": 1, "status": "safe"}
        assert data[0]["days"][1] == {"day": 2, "status": None}

    def test_decode_accepts_null_and_unset(self) -> None:
        data = encode_calendar(create_year(2026))
        data[0]["days"][0]["status"] = "unset"
        data[0]["days"][1]["status"] = "near_miss"
        cal = decode_calendar(data, 2026)
        assert cal[0].days[0].status == DayStatus.UNSET
        assert cal[0].days[1].status == DayStatus.NEAR_MISS
        assert cal[0].days[2].status == DayStatus.UNSET

    def test_decode_invalid_raises(self) -> None:
        with pytest.raises(ValueError, match="valid 2026 calendar"):
            decode_calendar([], 2026)

    def test_parse_status(self) -> None:
        assert parse_status(None) == DayStatus.UNSET
        assert parse_status("accident") == DayStatus.ACCIDENT
        assert parse_status("nope") is None
        assert parse_status(3) is None


# =====================================================================
# set_status / cycle_status
# =====================================================================


class TestSetStatus:
    def test_changes_exactly_one_day(self) -> None:
        cal = create_year(2026)
        updated = set_status(cal, 2, 15, DayStatus.ACCIDENT)
        assert get_status(updated, 2, 15) == DayStatus.ACCIDENT
        changed = [
            (m.month, d.day)
            for m_old, m in zip(cal, updated)
            for d_old, d in zip(m_old.days, m.days)
            if d_old != d
        ]
        assert changed == [(2, 15)]

    def test_untouched_months_are_shared(self) -> None:
        cal = create_year(2026)
        updated = set_status(cal, 2, 15, DayStatus.SAFE)
        assert updated is not cal
        assert updated[2] is not cal[2]
        for m in (0, 1, 3, 11):
            assert updated[m] is cal[m]

    def test_input_not_mutated(self) -> None:
        cal = create_year(2026)
        set_status(cal, 0, 1, DayStatus.SAFE)
        assert get_status(cal, 0, 1) == DayStatus.UNSET

    @pytest.mark.parametrize("month_index,day", [(-1, 1), (12, 1), (1, 0), (1, 29), (3, 31)])
    def test_out_of_range_is_noop(self, month_index: int, day: int) -> None:
        cal = create_year(2026)
        assert set_status(cal, month_index, day, DayStatus.SAFE) is cal

    def test_same_status_returns_input(self) -> None:
        cal = create_year(2026)
        assert set_status(cal, 0, 1, DayStatus.UNSET) is cal


class TestCycleStatus:
    def test_cycle_order(self) -> None:
        cal = create_year(2026)
        seen = []
        for _ in range(4):
            cal = cycle_status(cal, 4, 10)
            seen.append(get_status(cal, 4, 10))
        assert seen == [
            DayStatus.SAFE,
            DayStatus.NEAR_MISS,
            DayStatus.ACCIDENT,
            DayStatus.UNSET,
        ]

    def test_four_cycles_close(self) -> None:
        cal = create_year(2026)
        cycled = cal
        for _ in range(4):
            cycled = cycle_status(cycled, 0, 1)
        assert cycled == cal

    def test_stale_click_is_noop(self) -> None:
        cal = create_year(2026)
        # February 30 does not exist
        assert cycle_status(cal, 1, 30) is cal

    def test_typed_records_equal(self) -> None:
        assert DayRecord(day=1) == DayRecord(day=1, status=DayStatus.UNSET)
        assert MonthRecord(0, 2026, ()) == MonthRecord(month=0, year=2026, days=())
