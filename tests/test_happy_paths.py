from fastapi.testclient import TestClient

from concierge.main import app
from concierge.routes.chat import get_phrasing_client
from concierge.services import session_store
from concierge.services.progress import get_questions


class FakePhrasing:
    def __init__(self, reply=None):
        self.reply = reply
        self.calls = []

    async def phrase(self, instruction, history):
        self.calls.append((instruction, list(history)))
        return self.reply


def setup_function():
    session_store.clear_sessions()
    app.dependency_overrides.clear()


def teardown_function():
    app.dependency_overrides.clear()


def _client(reply=None):
    phrasing = FakePhrasing(reply)
    app.dependency_overrides[get_phrasing_client] = lambda: phrasing
    return TestClient(app), phrasing


def test_health_reports_active_brokers():
    client = TestClient(app)
    response = client.get("/health/")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "brokers": "9"}


def test_single_turn_recap_then_acknowledge():
    client, _ = _client()

    response = client.post(
        "/chat",
        json={"message": "I'm buying in Austin, TX. Credit score 720, budget $700k, priority is rate"},
    )
    assert response.status_code == 200
    data = response.json()
    session_id = data["sessionId"]
    assert data["pointer"] == 3
    assert data["recapDue"] is True
    assert data["refreshKey"] == 1
    assert data["fallback"] is True
    assert data["summary"]["location"] == "Austin, TX"
    assert data["summary"]["credit"] == "720"
    assert data["summary"]["amount"] == 700000
    assert data["summary"]["priority"] == "rate"
    assert data["message"].startswith("Here is your current deal profile - Location: Austin, TX")

    follow_up = client.post(
        "/chat",
        json={"sessionId": session_id, "message": "We already signed the purchase agreement"},
    ).json()
    assert follow_up["sessionId"] == session_id
    assert follow_up["recapDue"] is False
    assert follow_up["refreshKey"] == 1
    assert follow_up["summary"]["timeline"] == "already signed"
    assert follow_up["summary"]["location"] == "Austin, TX"
    assert follow_up["message"].startswith("Thanks for the update.")


def test_step_by_step_discovery():
    client, _ = _client()
    questions = get_questions("en")

    first = client.post("/chat", json={"message": "Hi there"}).json()
    assert first["pointer"] == 0
    assert first["message"] == f"Thanks for sharing! {questions[0]}"

    session_id = first["sessionId"]
    second = client.post("/chat", json={"sessionId": session_id, "message": "The home is in Denver, CO"}).json()
    assert second["pointer"] == 1
    assert second["message"] == f"Thanks for sharing! {questions[1]}"

    snapshot = client.get("/chat/session", params={"sessionId": session_id}).json()
    assert snapshot["sessionId"] == session_id
    assert snapshot["pointer"] == 1
    assert snapshot["summary"]["location"] == "Denver, CO"
    assert [m["author"] for m in snapshot["messages"]] == ["user", "ai", "user", "ai"]
    assert "createdAt" in snapshot["messages"][0]


def test_phrased_reply_is_returned():
    client, phrasing = _client("Welcome! Where is the property located?")

    data = client.post("/chat", json={"message": "Hello"}).json()

    assert data["message"] == "Welcome! Where is the property located?"
    assert data["fallback"] is False
    instruction, history = phrasing.calls[0]
    assert instruction.pending_question == get_questions("en")[0]
    assert history[-1].content == "Hello"


def test_chinese_turn_uses_chinese_copy():
    client, _ = _client()

    data = client.post(
        "/chat",
        json={"message": "计划在洛杉矶购房，信用分 720，预算 70 万美金，希望利率越低越好。", "locale": "zh"},
    ).json()

    assert data["summary"]["location"] == "洛杉矶"
    assert data["recapDue"] is True
    assert data["message"].startswith("这是您当前的贷款档案：")


def test_reset_archives_session():
    client, _ = _client()
    session_id = client.post("/chat", json={"message": "in Austin, TX"}).json()["sessionId"]

    snapshot = client.post("/chat/session", json={"action": "reset", "sessionId": session_id}).json()

    assert snapshot["sessionId"] != session_id
    assert snapshot["summary"] is None
    assert snapshot["messages"] == []
    assert snapshot["refreshKey"] == 0
    assert session_store.get_session(session_id).status == "archived"


def test_manual_profile_counts_as_recap():
    client, _ = _client()

    snapshot = client.post(
        "/chat/profile",
        json={
            "profile": {
                "name": "Ada Lovelace",
                "city": "Seattle",
                "credit": "760",
                "amount": "950000",
                "priority": "minimal paperwork",
            }
        },
    ).json()
    assert snapshot["refreshKey"] == 1
    assert snapshot["pointer"] == 3
    assert snapshot["summary"]["location"] == "Seattle"
    assert snapshot["summary"]["priority"] == "documents"

    turn = client.post("/chat", json={"sessionId": snapshot["sessionId"], "message": "thanks"}).json()
    assert turn["recapDue"] is False
    assert turn["refreshKey"] == 1


def test_recommendations_for_licensed_region():
    client = TestClient(app)

    response = client.post("/recommendations", json={"summary": {"location": "Austin, TX", "credit": "700"}})

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 9
    assert data["eligible"] == 1
    assert data["region"] == "TX"
    assert data["regionRelaxed"] is False
    assert data["creditRelaxed"] is False
    [pick] = data["recommendations"]
    assert pick["category"] == "lowestRate"
    assert pick["broker"]["id"] == "brk-lone-star"
    assert pick["broker"]["lenderName"] == "Lone Star Home Loans"
    assert pick["broker"]["maxLoanToValue"] == 96


def test_recommendations_relax_region_and_accept_nulls():
    client = TestClient(app)

    response = client.post(
        "/recommendations",
        json={"summary": {"location": "Boise, ID", "priority": None, "amount": None}, "variant": -3},
    )

    data = response.json()
    assert data["regionRelaxed"] is True
    assert data["eligible"] == 9
    ids = [pick["broker"]["id"] for pick in data["recommendations"]]
    assert len(ids) == 3
    assert len(set(ids)) == 3
    assert "brk-retired-desk" not in ids


def test_invalid_payloads_return_400():
    client, _ = _client()

    bad_variant = client.post("/recommendations", json={"summary": {}, "variant": "abc"})
    assert bad_variant.status_code == 400
    assert "error" in bad_variant.json()

    empty_message = client.post("/chat", json={"message": ""})
    assert empty_message.status_code == 400

    bad_action = client.post("/chat/session", json={"action": "delete"})
    assert bad_action.status_code == 400
