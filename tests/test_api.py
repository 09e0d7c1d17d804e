"""Endpoint tests through FastAPI's TestClient."""

import json
from pathlib import Path
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from conftest import StubLLM
from coffee_quest.llm import HttpLLM, LLMError


QUEST_REPLY = {
    "narrative": "Steam curls over Bengaluru as your quest begins.",
    "challenge": {
        "title": "Cold Brew Trial",
        "description": "Try this month's single-origin as cold brew.",
        "successCriteria": "Add the featured single-origin to your cart.",
        "xpReward": 180,
        "bonusPoints": 120,
    },
    "reward": {
        "type": "discount",
        "label": "15% off this month’s single-origin",
        "code": "ORIGIN15",
        "description": "Save on your first bag.",
        "conditions": "Featured SKUs only.",
    },
    "progress": {"level": 3, "points": 1570, "streakDays": 5},
}

CUSTOM_USER = {
    "name": "Kabir",
    "city": "Chennai",
    "segment": "Remote Worker",
    "preferences": {
        "roast": "dark",
        "favDrinks": ["filter coffee"],
        "sweetness": "low",
        "rewardPreference": "badge",
        "brewMethods": ["south-indian-filter"],
    },
    "behavior": {"avgMonthlyOrders": 1, "lastOrderDaysAgo": 14, "typicalCartValue": 600},
    "loyalty": {"level": 1, "points": 40, "streakDays": 0},
}


# ── health / users ───────────────────────────────────────


def test_health_reports_rules_engine(make_client):
    resp = make_client().get("/api/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "service": "coffee-quest-backend", "engine": "rules"}


def test_list_users(make_client):
    users = make_client().get("/api/users").json()
    assert [u["id"] for u in users] == ["u1", "u2", "u3"]
    assert users[0]["preferences"]["favDrinks"] == ["cold brew", "espresso"]
    assert users[0]["loyalty"]["streakDays"] == 4


# ── POST /api/experience ─────────────────────────────────


def test_seed_experience_with_llm(make_client):
    llm = StubLLM(QUEST_REPLY)
    resp = make_client(llm=llm).post("/api/experience", json={"userId": "u1"})
    assert resp.status_code == 200
    data = resp.json()
    assert data["user"] == {
        "id": "u1", "name": "Aarav", "city": "Bengaluru", "segment": "Urban Millennial Professional",
    }
    assert data["challenge"]["title"] == "Cold Brew Trial"
    assert data["reward"]["code"] == "ORIGIN15"
    assert data["progress"]["streakDays"] == 5


def test_seed_experience_rule_based(make_client):
    data = make_client().post("/api/experience", json={"userId": "u3"}).json()
    assert data["challenge"]["title"] == "Brew Master Challenge"
    assert data["reward"]["type"] == "early-access"
    assert data["reward"]["code"] is None


def test_unknown_user_is_404_without_provider_call(make_client):
    llm = StubLLM(QUEST_REPLY)
    resp = make_client(llm=llm).post("/api/experience", json={"userId": "u404"})
    assert resp.status_code == 404
    assert resp.json() == {"error": "User not found"}
    assert llm.calls == []


def test_missing_user_id_is_404(make_client):
    resp = make_client(llm=StubLLM(QUEST_REPLY)).post("/api/experience", json={})
    assert resp.status_code == 404


@pytest.mark.parametrize("user_id", [42, None, ["u1"], {"id": "u1"}])
def test_non_string_user_id_is_404_without_provider_call(make_client, user_id):
    llm = StubLLM(QUEST_REPLY)
    resp = make_client(llm=llm).post("/api/experience", json={"userId": user_id})
    assert resp.status_code == 404
    assert resp.json() == {"error": "User not found"}
    assert llm.calls == []


def test_provider_failure_is_500(make_client):
    llm = StubLLM(LLMError("LLM provider returned HTTP 503"))
    resp = make_client(llm=llm).post("/api/experience", json={"userId": "u1"})
    assert resp.status_code == 500
    assert "HTTP 503" in resp.json()["error"]


def test_dropped_provider_connection_is_json_500(make_client, caplog):
    llm = HttpLLM(base_url="http://llm.test", api_key="k")
    with patch("httpx.AsyncClient.post", AsyncMock(side_effect=httpx.ReadError("reset"))):
        with caplog.at_level("ERROR"):
            resp = make_client(llm=llm).post("/api/experience", json={"userId": "u1"})
    assert resp.status_code == 500
    assert resp.headers["content-type"].startswith("application/json")
    assert "ReadError" in resp.json()["error"]
    failure = next(r for r in caplog.records if "Experience generation failed" in r.getMessage())
    assert failure.exc_info is not None


def test_unparseable_reply_is_500(make_client):
    resp = make_client(llm=StubLLM("Sorry, I can't do that.")).post(
        "/api/experience", json={"userId": "u1"}
    )
    assert resp.status_code == 500
    assert "not valid JSON" in resp.json()["error"]


def test_partial_reply_is_default_filled(make_client):
    resp = make_client(llm=StubLLM({"narrative": "Just a story."})).post(
        "/api/experience", json={"userId": "u2"}
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["narrative"] == "Just a story."
    assert data["challenge"]["title"] == "Revive Your Brew Streak"
    assert data["reward"]["label"]
    assert data["progress"] == {"level": 2, "points": 870, "streakDays": 3}


# ── POST /api/experience/custom ──────────────────────────


def test_custom_experience(make_client):
    llm = StubLLM(QUEST_REPLY)
    resp = make_client(llm=llm).post(
        "/api/experience/custom", json={"user": CUSTOM_USER, "goal": "drive-new-product-trial"}
    )
    assert resp.status_code == 200
    assert resp.json()["user"]["name"] == "Kabir"
    assert resp.json()["user"]["id"] is None
    assert "drive-new-product-trial" in llm.calls[0][1]


def test_custom_without_name_is_400(make_client):
    llm = StubLLM(QUEST_REPLY)
    client = make_client(llm=llm)
    for body in ({"user": {"city": "Pune"}}, {"user": {"name": "  "}}, {}):
        resp = client.post("/api/experience/custom", json=body)
        assert resp.status_code == 400
        assert resp.json() == {"error": "user.name is required"}
    assert llm.calls == []


def test_custom_with_invalid_profile_is_400(make_client):
    resp = make_client().post(
        "/api/experience/custom", json={"user": {"name": "X", "loyalty": {"level": "gold"}}}
    )
    assert resp.status_code == 400
    assert "Invalid user profile" in resp.json()["error"]


def test_custom_with_non_object_user_is_400(make_client):
    resp = make_client().post("/api/experience/custom", json={"user": "Kabir"})
    assert resp.status_code == 400
    assert "error" in resp.json()


# ── POST /api/experience/batch ───────────────────────────


def test_batch_returns_one_result_per_user(make_client):
    llm = StubLLM(QUEST_REPLY, LLMError("rate limited"), QUEST_REPLY)
    users = [CUSTOM_USER, {**CUSTOM_USER, "name": "Asha"}, {**CUSTOM_USER, "name": "Nikhil"}]
    resp = make_client(llm=llm).post("/api/experience/batch", json={"users": users, "goal": "boost-social-shares"})
    assert resp.status_code == 200
    results = resp.json()["results"]
    assert len(results) == 3
    assert [r["success"] for r in results] == [True, False, True]
    assert results[1] == {
        "success": False,
        "user": {"id": None, "name": "Asha", "city": "Chennai", "segment": "Remote Worker"},
        "error": "rate limited",
    }
    assert results[2]["challenge"]["title"] == "Cold Brew Trial"
    assert len(llm.calls) == 3


def test_batch_invalid_rows_do_not_abort(make_client):
    users = [{"city": "Goa"}, CUSTOM_USER]
    results = make_client().post("/api/experience/batch", json={"users": users}).json()["results"]
    assert [r["success"] for r in results] == [False, True]


def test_batch_empty_list_is_400(make_client):
    client = make_client()
    assert client.post("/api/experience/batch", json={"users": []}).status_code == 400
    assert client.post("/api/experience/batch", json={}).status_code == 400


# ── POST /api/experience/channel-assets ──────────────────


def test_channel_assets_rule_based(make_client):
    client = make_client()
    experience = client.post("/api/experience", json={"userId": "u1"}).json()
    resp = client.post("/api/experience/channel-assets", json={"experience": experience})
    assert resp.status_code == 200
    assets = resp.json()
    assert set(assets) == {"email", "push", "inApp", "rewardConfig"}
    assert assets["email"]["previewText"]
    assert assets["inApp"]["ctaLabel"]
    assert assets["rewardConfig"]["internalName"] == "brew10"


def test_channel_assets_with_llm(make_client):
    client = make_client(llm=StubLLM(QUEST_REPLY, {"email": {"subject": "Your cold brew quest"}}))
    experience = client.post("/api/experience", json={"userId": "u1"}).json()
    assets = client.post("/api/experience/channel-assets", json={"experience": experience}).json()
    assert assets["email"]["subject"] == "Your cold brew quest"
    assert assets["rewardConfig"]["type"] == "discount"


def test_channel_assets_requires_experience(make_client):
    client = make_client()
    assert client.post("/api/experience/channel-assets", json={}).status_code == 400
    resp = client.post("/api/experience/channel-assets", json={"experience": {"narrative": "x"}})
    assert resp.status_code == 400
    assert "Invalid experience" in resp.json()["error"]


# ── /api/brand-config ────────────────────────────────────


def test_get_brand_config(make_client):
    config = make_client().get("/api/brand-config").json()
    assert config["brandName"] == "Roastery Realm Coffee"
    assert config["defaultCampaignGoal"] == "increase-order-value"


def test_put_merges_partial_config(make_client, brand_config_path: Path):
    client = make_client()
    before = client.get("/api/brand-config").json()
    resp = client.put("/api/brand-config", json={"tone": "quietly confident"})
    assert resp.status_code == 200
    after = client.get("/api/brand-config").json()
    assert after["tone"] == "quietly confident"
    assert {k: v for k, v in after.items() if k != "tone"} == {
        k: v for k, v in before.items() if k != "tone"
    }
    assert json.loads(brand_config_path.read_text())["tone"] == "quietly confident"


def test_put_last_write_wins(make_client, brand_config_path: Path):
    client = make_client()
    client.put("/api/brand-config", json={"guardrails": "one"})
    client.put("/api/brand-config", json={"guardrails": "two"})
    assert client.get("/api/brand-config").json()["guardrails"] == "two"
    assert json.loads(brand_config_path.read_text())["guardrails"] == "two"


def test_put_invalid_value_is_400(make_client):
    resp = make_client().put("/api/brand-config", json={"rewardPool": [{"id": "x"}]})
    assert resp.status_code == 400
    assert "rewardPool" in resp.json()["error"]


def test_brand_config_feeds_prompts(make_client):
    llm = StubLLM(QUEST_REPLY)
    client = make_client(llm=llm)
    client.put("/api/brand-config", json={"brandName": "Kaapi Club", "defaultCampaignGoal": "collect-preferences"})
    client.post("/api/experience", json={"userId": "u1"})
    _, prompt, system = llm.calls[0]
    assert "Kaapi Club" in system
    assert "collect-preferences" in prompt
