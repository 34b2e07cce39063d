from datetime import date

import httpx
import pytest

from fintrack.client.api import FinanceClient, Notification
from fintrack.client.session import SIGNED_IN, SessionUser


def make_client(handler):
    http = httpx.Client(transport=httpx.MockTransport(handler), base_url="http://testserver")
    return FinanceClient(http)


class FakeService:
    """Answers just enough of the API for the client and records every call."""

    def __init__(self):
        self.calls = []
        self.budget_id = None
        self.income_id = None

    def writes(self):
        return [c for c in self.calls if c[0] in {"POST", "PATCH", "DELETE"}]

    def __call__(self, request):
        method, path = request.method, request.url.path
        self.calls.append((method, path))
        if method == "GET" and path == "/overview":
            return httpx.Response(200, json={
                "month": int(request.url.params["month"]),
                "year": int(request.url.params["year"]),
                "budget_id": self.budget_id,
                "income_id": self.income_id,
            })
        if method == "POST" and path == "/budgets":
            self.budget_id = "b-1"
            return httpx.Response(201, json={"id": self.budget_id})
        if method == "POST" and path == "/incomes":
            self.income_id = "i-1"
            return httpx.Response(201, json={"id": self.income_id})
        if method == "PATCH" and path in {f"/budgets/{self.budget_id}", f"/incomes/{self.income_id}"}:
            return httpx.Response(200, json={"id": path.rsplit("/", 1)[-1]})
        if method == "GET" and path == "/expenses":
            return httpx.Response(200, json=[{"id": "e-1", "amount": 5}, {"id": "e-2", "amount": 7}])
        if method == "DELETE" and path.startswith("/expenses/"):
            return httpx.Response(204)
        if method == "POST" and path == "/expenses":
            return httpx.Response(201, json={"id": "e-3"})
        return httpx.Response(404, json={"detail": "Not Found"})


def test_saving_budget_twice_creates_then_updates():
    service = FakeService()
    client = make_client(service)

    assert client.save_budget_and_income(budget="500", month=10, year=2026)
    assert client.save_budget_and_income(budget=650, month=10, year=2026)

    assert service.writes() == [("POST", "/budgets"), ("PATCH", "/budgets/b-1")]
    assert client.overview["budget_id"] == "b-1"
    assert client.notifications[-1].title == "Updated successfully!"


def test_saving_income_and_budget_together():
    service = FakeService()
    client = make_client(service)
    client.save_budget_and_income(budget=100, income="2500.50", month=10, year=2026)
    assert service.writes() == [("POST", "/budgets"), ("POST", "/incomes")]


def test_empty_values_skip_writes():
    service = FakeService()
    client = make_client(service)
    assert client.save_budget_and_income(budget="", income=None, month=10, year=2026)
    assert service.writes() == []


def test_unparseable_amount_is_reported():
    service = FakeService()
    client = make_client(service)
    assert not client.save_budget_and_income(budget="lots", month=10, year=2026)
    assert service.calls == []
    assert client.notifications == [Notification("Error", "Please enter a valid amount", "destructive")]


def test_superseded_analytics_response_is_discarded():
    holder = {}

    def handler(request):
        requested = request.url.params["range"]
        if requested == "week":
            # the user switched to "month" while this request was in flight
            holder["client"].load_analytics("month")
        return httpx.Response(200, json={"range": requested})

    client = make_client(handler)
    holder["client"] = client

    assert client.load_analytics("week") is None
    assert client.analytics == {"range": "month"}


def test_response_arriving_after_sign_out_is_discarded():
    holder = {}

    def handler(request):
        holder["client"].session.end()
        return httpx.Response(200, json=[{"id": "e-1"}])

    client = make_client(handler)
    holder["client"] = client
    client.session.start(SessionUser(id="u1", email="ada@example.com"))

    assert client.list_expenses() is None
    assert client.expenses == []


def test_remote_failure_becomes_notification():
    client = make_client(lambda request: httpx.Response(500, json={"detail": "boom"}))
    assert client.list_expenses() is None
    assert client.notifications == [Notification("Error", "Failed to fetch expenses", "destructive")]


def test_network_failure_becomes_notification():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = make_client(handler)
    assert client.load_analytics() is None
    assert client.notifications[0].description == "Failed to load analytics"


def test_auth_failure_message_is_verbatim():
    client = make_client(
        lambda request: httpx.Response(401, json={"detail": "Invalid email or password"})
    )
    assert client.sign_in("ada@example.com", "nope") is None
    assert client.notifications[0] == Notification("Sign in failed", "Invalid email or password", "destructive")
    assert not client.session.is_authenticated


def test_validation_errors_are_flattened():
    client = make_client(lambda request: httpx.Response(
        422, json={"detail": [{"msg": "String should have at least 6 characters"}]}
    ))
    client.sign_up("ada@example.com", "abc")
    assert client.notifications[0] == Notification(
        "Sign up failed", "String should have at least 6 characters", "destructive"
    )


def test_plain_string_error_list_is_reported():
    client = make_client(lambda request: httpx.Response(400, json={"detail": ["bad period"]}))
    assert client.list_expenses() is None
    assert client.notifications == [Notification("Error", "Failed to fetch expenses", "destructive")]

    assert client.sign_up("ada@example.com", "secret123") is None
    assert client.notifications[-1].description == "bad period"


def test_non_json_success_body_becomes_notification():
    client = make_client(lambda request: httpx.Response(
        200, text="<html>proxy</html>", headers={"content-type": "text/html"}
    ))
    assert client.load_analytics("month") is None
    assert client.analytics is None
    assert client.notifications[-1] == Notification("Error", "Failed to load analytics", "destructive")

    assert client.list_expenses() is None
    assert client.load_overview(10, 2026) is None
    assert client.add_expense(5, "food") is None
    assert client.sign_in("ada@example.com", "secret123") is None
    assert client.notifications[-1].title == "Sign in failed"
    assert client.restore_session() is None
    assert not client.session.is_authenticated
    assert len(client.cache) == 0


def test_list_expenses_by_date_range():
    seen = []

    def handler(request):
        seen.append(dict(request.url.params))
        return httpx.Response(200, json=[{"id": "e-1"}])

    client = make_client(handler)
    client.list_expenses(start=date(2026, 10, 1), end=date(2026, 10, 31), order="asc")
    client.list_expenses(on=date(2026, 10, 5))

    assert seen == [
        {"order": "asc", "start": "2026-10-01", "end": "2026-10-31"},
        {"order": "desc", "expense_date": "2026-10-05"},
    ]


def test_cached_queries_until_refresh():
    service = FakeService()
    client = make_client(service)

    client.list_expenses()
    client.list_expenses()
    assert service.calls.count(("GET", "/expenses")) == 1

    client.refresh()
    client.list_expenses()
    assert service.calls.count(("GET", "/expenses")) == 2
    assert client.refresh_count == 1


def test_add_expense_bumps_refresh_signal():
    service = FakeService()
    client = make_client(service)
    assert client.add_expense("12.40", "food", "lunch") == {"id": "e-3"}
    assert client.refresh_count == 1
    assert client.add_expense("", "food") is None
    assert client.refresh_count == 1


def test_delete_expense_updates_state():
    service = FakeService()
    client = make_client(service)
    client.list_expenses()
    assert client.delete_expense("e-1")
    assert [e["id"] for e in client.expenses] == ["e-2"]
    assert client.notifications[-1].title == "Expense deleted"


def test_sign_in_resets_state():
    def handler(request):
        return httpx.Response(200, json={"id": "u2", "email": "grace@example.com", "display_name": "Grace"})

    client = make_client(handler)
    events = []
    client.session.subscribe(events.append)
    client.session.start(SessionUser(id="u1", email="ada@example.com"))
    client.cache.set(("expenses", "u1", None, None, None, "desc"), [{"id": "old"}])
    client.expenses = [{"id": "old"}]

    user = client.sign_in("grace@example.com", "secret123")

    assert user.display_name == "Grace"
    assert client.session.current.id == "u2"
    assert len(client.cache) == 0
    assert client.expenses == []
    assert [e.name for e in events][-1] == SIGNED_IN


@pytest.fixture
def live(client):
    return FinanceClient(client)


def test_end_to_end_against_service(live):
    assert live.sign_up("ada@example.com", "secret123", display_name="Ada")
    user = live.sign_in("ada@example.com", "secret123")
    assert user.display_name == "Ada"

    assert live.add_expense(10, "food", "lunch")
    assert live.add_expense(20, "Food", "dinner")
    assert live.add_expense(5, "transport", "bus")

    analytics = live.load_analytics("month")
    assert analytics["total_spent"] == 35
    assert analytics["top_category"]["name"] == "food"

    assert live.save_budget_and_income(budget=40, income=1000)
    assert live.save_budget_and_income(budget=30)
    assert live.overview["budget_limit"] == 30
    assert live.overview["status"] == "over_budget"
    assert len(live.http.get("/budgets").json()) == 1

    live.sign_out()
    assert not live.session.is_authenticated
    assert live.restore_session() is None
