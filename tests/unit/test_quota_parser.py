# tests/unit/test_quota_parser.py
"""Tests for GetUserStatus normalization."""

from datetime import datetime, timedelta, timezone

import pytest

from gravity_guard.quota.parser import (
    format_time_until_reset,
    parse_prompt_credits,
    parse_reset_time,
    parse_user_status,
)

NOW = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)
RESET = NOW + timedelta(hours=1)


def model_config(label, model, fraction=None, reset="2026-01-15T13:00:00Z"):
    quota = {"resetTime": reset}
    if fraction is not None:
        quota["remainingFraction"] = fraction
    return {"label": label, "modelOrAlias": {"model": model}, "quotaInfo": quota}


def status_payload(configs, plan_status=None):
    user_status = {"cascadeModelConfigData": {"clientModelConfigs": configs}}
    if plan_status is not None:
        user_status["planStatus"] = plan_status
    return {"userStatus": user_status}


class TestParseResetTime:
    def test_iso_with_z_suffix(self):
        assert parse_reset_time("2026-01-15T13:00:00Z") == RESET

    def test_iso_with_offset(self):
        assert parse_reset_time("2026-01-15T14:00:00+01:00") == RESET

    def test_naive_iso_treated_as_utc(self):
        assert parse_reset_time("2026-01-15T13:00:00") == RESET

    def test_epoch_seconds_and_milliseconds(self):
        epoch = RESET.timestamp()
        assert parse_reset_time(epoch) == RESET
        assert parse_reset_time(int(epoch * 1000)) == RESET
        assert parse_reset_time(str(int(epoch))) == RESET

    @pytest.mark.parametrize("value", [None, "", True, "not a date", {"a": 1}])
    def test_unparseable(self, value):
        assert parse_reset_time(value) is None


class TestFormatTimeUntilReset:
    def test_unknown(self):
        assert format_time_until_reset(None, None) == "Unknown"
        assert format_time_until_reset(60, None) == "Unknown"

    def test_ready_once_due(self):
        assert format_time_until_reset(0, RESET) == "Ready"
        assert format_time_until_reset(-30, RESET) == "Ready"

    def test_minutes_round_up(self):
        assert format_time_until_reset(61, RESET).startswith("2m (")
        assert format_time_until_reset(45 * 60, RESET).startswith("45m (")

    def test_hours(self):
        assert format_time_until_reset(3600, RESET).startswith("1h (")
        assert format_time_until_reset(3900, RESET).startswith("1h 5m (")

    def test_local_reset_time_suffix(self):
        local = RESET.astimezone()
        assert format_time_until_reset(3600, RESET).endswith(
            f"({local:%d/%m %H:%M})"
        )


class TestParseUserStatus:
    def test_models_parsed(self):
        snapshot = parse_user_status(
            status_payload(
                [
                    model_config("Gemini Pro", "gemini-pro", 0.5),
                    model_config("Claude Sonnet", "claude-sonnet", 0.015),
                ]
            ),
            now=NOW,
        )
        assert snapshot.timestamp == NOW
        assert [m.label for m in snapshot.models] == ["Gemini Pro", "Claude Sonnet"]

        pro = snapshot.models[0]
        assert pro.model_id == "gemini-pro"
        assert pro.remaining_percentage == pytest.approx(50.0)
        assert pro.remaining_fraction == pytest.approx(0.5)
        assert pro.is_exhausted is False
        assert pro.reset_time == RESET
        assert pro.time_until_reset == pytest.approx(3600.0)
        assert pro.formatted_time_until_reset.startswith("1h (")

    def test_entries_without_quota_info_skipped(self):
        configs = [{"label": "Autocomplete", "modelOrAlias": {"model": "tab"}}]
        assert parse_user_status(status_payload(configs), now=NOW).models == []

    def test_missing_fraction_is_unknown(self):
        snapshot = parse_user_status(
            status_payload([model_config("Gemini Flash", "gemini-flash")]), now=NOW
        )
        model = snapshot.models[0]
        assert model.remaining_percentage is None
        assert model.remaining_fraction is None
        assert model.is_exhausted is False

    def test_zero_fraction_is_exhausted(self):
        snapshot = parse_user_status(
            status_payload([model_config("Gemini Pro", "gemini-pro", 0)]), now=NOW
        )
        assert snapshot.models[0].remaining_percentage == 0
        assert snapshot.models[0].is_exhausted is True

    def test_fraction_clamped(self):
        snapshot = parse_user_status(
            status_payload(
                [
                    model_config("High", "high", 1.5),
                    model_config("Low", "low", -0.2),
                ]
            ),
            now=NOW,
        )
        assert snapshot.models[0].remaining_percentage == 100.0
        assert snapshot.models[1].remaining_percentage == 0.0

    def test_missing_label_and_model(self):
        snapshot = parse_user_status(
            status_payload([{"quotaInfo": {"remainingFraction": 0.3}}]), now=NOW
        )
        model = snapshot.models[0]
        assert model.label == "Unknown"
        assert model.model_id == "unknown"
        assert model.reset_time is None
        assert model.formatted_time_until_reset == "Unknown"

    def test_past_reset_is_ready(self):
        snapshot = parse_user_status(
            status_payload(
                [model_config("Gemini Pro", "gemini-pro", 0, reset="2026-01-15T11:00:00Z")]
            ),
            now=NOW,
        )
        model = snapshot.models[0]
        assert model.time_until_reset == pytest.approx(-3600.0)
        assert model.formatted_time_until_reset == "Ready"

    def test_empty_payload(self):
        snapshot = parse_user_status({}, now=NOW)
        assert snapshot.models == []
        assert snapshot.prompt_credits is None


class TestParsePromptCredits:
    def test_credits_present(self):
        credits = parse_prompt_credits(
            {"planStatus": {"availablePromptCredits": 250, "planInfo": {"monthlyPromptCredits": 1000}}}
        )
        assert credits is not None
        assert credits.available == 250
        assert credits.monthly == 1000
        assert credits.remaining_percentage == pytest.approx(25.0)
        assert credits.used_percentage == pytest.approx(75.0)

    def test_zero_monthly_means_absent(self):
        assert parse_prompt_credits(
            {"planStatus": {"availablePromptCredits": 0, "planInfo": {"monthlyPromptCredits": 0}}}
        ) is None

    def test_missing_available_means_absent(self):
        assert parse_prompt_credits(
            {"planStatus": {"planInfo": {"monthlyPromptCredits": 1000}}}
        ) is None

    def test_remaining_clamped(self):
        credits = parse_prompt_credits(
            {"planStatus": {"availablePromptCredits": 1500, "planInfo": {"monthlyPromptCredits": 1000}}}
        )
        assert credits.remaining_percentage == 100.0
        assert credits.used_percentage == 0.0

    def test_attached_to_snapshot(self):
        snapshot = parse_user_status(
            status_payload(
                [],
                plan_status={"availablePromptCredits": 500, "planInfo": {"monthlyPromptCredits": 1000}},
            ),
            now=NOW,
        )
        assert snapshot.prompt_credits.remaining_percentage == pytest.approx(50.0)


class TestMalformedPayloads:
    @pytest.mark.parametrize(
        "data",
        [
            [],
            {"userStatus": ["x"]},
            {"userStatus": {"cascadeModelConfigData": "none"}},
            {"userStatus": {"cascadeModelConfigData": {"clientModelConfigs": {"a": 1}}}},
            {"userStatus": {"cascadeModelConfigData": {"clientModelConfigs": ["x", 3]}}},
        ],
    )
    def test_wrong_container_types_yield_empty_snapshot(self, data):
        snapshot = parse_user_status(data, now=NOW)
        assert snapshot.models == []
        assert snapshot.prompt_credits is None

    def test_non_object_model_or_alias(self):
        config = model_config("Gemini Pro", "gemini-pro", 0.5)
        config["modelOrAlias"] = "gemini"
        model = parse_user_status(status_payload([config]), now=NOW).models[0]
        assert model.model_id == "unknown"
        assert model.remaining_percentage == pytest.approx(50.0)

    def test_non_string_label(self):
        config = model_config("Gemini Pro", "gemini-pro", 0.5)
        config["label"] = 42
        assert parse_user_status(status_payload([config]), now=NOW).models[0].label == "Unknown"

    @pytest.mark.parametrize(
        "plan_status",
        [
            "pro",
            ["pro"],
            {"availablePromptCredits": 500, "planInfo": "pro"},
        ],
    )
    def test_non_object_plan_data(self, plan_status):
        assert parse_prompt_credits({"planStatus": plan_status}) is None
        snapshot = parse_user_status(status_payload([], plan_status=plan_status), now=NOW)
        assert snapshot.prompt_credits is None
