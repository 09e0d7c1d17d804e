"""Tests for coffee_quest.schema — JSON extraction and default-fill."""

import pytest

from coffee_quest import rules
from coffee_quest.schema import (
    ResponseFormatError,
    coerce_channel_assets,
    coerce_experience,
    parse_json_object,
)
from coffee_quest.seed import find_user


@pytest.fixture
def defaults():
    return rules.build_experience(find_user("u1"))


# ── parse_json_object ────────────────────────────────────


def test_parse_plain_object():
    assert parse_json_object('{"narrative": "hi"}') == {"narrative": "hi"}


def test_parse_strips_markdown_fences():
    text = '```json\n{"narrative": "hi"}\n```'
    assert parse_json_object(text) == {"narrative": "hi"}


def test_parse_extracts_object_from_prose():
    text = 'Sure! Here is your quest:\n{"narrative": "hi"}\nEnjoy.'
    assert parse_json_object(text) == {"narrative": "hi"}


@pytest.mark.parametrize("text", ["", "   ", None])
def test_parse_empty_raises(text):
    with pytest.raises(ResponseFormatError, match="empty"):
        parse_json_object(text)


def test_parse_garbage_raises():
    with pytest.raises(ResponseFormatError, match="not valid JSON"):
        parse_json_object("the beans are restless tonight")


def test_parse_array_raises():
    with pytest.raises(ResponseFormatError, match="JSON object"):
        parse_json_object('[{"narrative": "hi"}]')


# ── coerce_experience ────────────────────────────────────


def test_complete_payload_is_used_verbatim(defaults):
    data = {
        "narrative": "A new roast awaits.",
        "challenge": {
            "title": "Cold Brew Sprint",
            "description": "Order two bags.",
            "successCriteria": "Checkout with 2 bags.",
            "xpReward": 200,
            "bonusPoints": 300,
        },
        "reward": {
            "type": "discount",
            "label": "15% off",
            "code": "SPRINT15",
            "description": "Save on your next bag.",
            "conditions": "3 days.",
        },
        "progress": {"level": 3, "points": 1750, "streakDays": 5},
    }
    exp = coerce_experience(data, defaults)
    assert exp.narrative == "A new roast awaits."
    assert exp.challenge.title == "Cold Brew Sprint"
    assert exp.challenge.bonus_points == 300
    assert exp.reward.code == "SPRINT15"
    assert exp.progress.points == 1750


def test_empty_object_is_entirely_defaults(defaults):
    assert coerce_experience({}, defaults) == defaults


def test_partial_payload_fills_missing_fields(defaults):
    exp = coerce_experience({"narrative": "Only a story.", "challenge": {"title": "T"}}, defaults)
    assert exp.narrative == "Only a story."
    assert exp.challenge.title == "T"
    assert exp.challenge.description == defaults.challenge.description
    assert exp.challenge.xp_reward == defaults.challenge.xp_reward
    assert exp.reward == defaults.reward
    assert exp.progress == defaults.progress


def test_wrong_types_fall_back(defaults):
    data = {
        "narrative": 42,
        "challenge": "not an object",
        "reward": {"type": "coupon", "label": "", "code": 7},
        "progress": {"level": "high", "points": True, "streakDays": 2.5},
    }
    exp = coerce_experience(data, defaults)
    assert exp.narrative == defaults.narrative
    assert exp.challenge == defaults.challenge
    assert exp.reward.type == defaults.reward.type
    assert exp.reward.label == defaults.reward.label
    assert exp.reward.code == defaults.reward.code
    assert exp.progress == defaults.progress


def test_numeric_coercion(defaults):
    exp = coerce_experience(
        {"challenge": {"xpReward": 175.0, "bonusPoints": "120"}}, defaults
    )
    assert exp.challenge.xp_reward == 175
    assert exp.challenge.bonus_points == 120


def test_explicit_null_code_means_no_code(defaults):
    exp = coerce_experience({"reward": {"code": None}}, defaults)
    assert defaults.reward.code == "BREW10"
    assert exp.reward.code is None


def test_reward_type_is_normalised(defaults):
    exp = coerce_experience({"reward": {"type": " Early-Access "}}, defaults)
    assert exp.reward.type == "early-access"


def test_snake_case_keys_accepted(defaults):
    exp = coerce_experience(
        {"challenge": {"success_criteria": "Do it."}, "progress": {"streak_days": 9}}, defaults
    )
    assert exp.challenge.success_criteria == "Do it."
    assert exp.progress.streak_days == 9


def test_user_summary_cannot_be_overridden(defaults):
    exp = coerce_experience({"user": {"name": "Somebody Else"}}, defaults)
    assert exp.user.name == "Aarav"


def test_defaults_logged(defaults, caplog):
    with caplog.at_level("WARNING"):
        coerce_experience({"narrative": "x"}, defaults)
    assert "challenge.title" in caplog.text


# ── coerce_channel_assets ────────────────────────────────


def test_channel_assets_partial_payload(defaults):
    asset_defaults = rules.build_channel_assets(defaults)
    data = {
        "email": {"subject": "Your quest is here"},
        "inApp": {"ctaLabel": "Let's brew"},
        "rewardConfig": {"expiryDays": "5", "type": "bogus"},
    }
    assets = coerce_channel_assets(data, asset_defaults)
    assert assets.email.subject == "Your quest is here"
    assert assets.email.body_text == asset_defaults.email.body_text
    assert assets.push == asset_defaults.push
    assert assets.in_app.cta_label == "Let's brew"
    assert assets.in_app.heading == asset_defaults.in_app.heading
    assert assets.reward_config.expiry_days == 5
    assert assets.reward_config.type == asset_defaults.reward_config.type
