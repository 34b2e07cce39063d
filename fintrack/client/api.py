"""HTTP client holding the state a finance dashboard renders.

Remote failures never propagate: they are logged and turned into a
``Notification`` the caller can show, and the client stays usable.
"""
import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, List, Optional, Union

import httpx

from .cache import QueryCache, RequestGenerations
from .session import INITIAL_SESSION, SessionEvent, SessionProvider, SessionUser


logger = logging.getLogger(__name__)

Amount = Union[float, int, str, None]


@dataclass(frozen=True)
class Notification:
    title: str
    description: str
    variant: str = "default"


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    detail = body.get("detail") if isinstance(body, dict) else None
    if isinstance(detail, list):
        # FastAPI validation errors
        return "; ".join(
            str(item.get("msg", item) if isinstance(item, dict) else item) for item in detail
        )
    if detail:
        return str(detail)
    return response.text or response.reason_phrase


def _parse_amount(value: Amount) -> Optional[float]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return float(value)


class FinanceClient:
    def __init__(self, http: httpx.Client, session: Optional[SessionProvider] = None):
        self.http = http
        self.session = session or SessionProvider()
        self.cache = QueryCache()
        self.generations = RequestGenerations()
        self.notifications: List[Notification] = []
        self.refresh_count = 0

        self.expenses: List[Dict[str, Any]] = []
        self.overview: Optional[Dict[str, Any]] = None
        self.analytics: Optional[Dict[str, Any]] = None

        self._unsubscribe = self.session.subscribe(self._on_session_change)

    def close(self) -> None:
        self._unsubscribe()

    # ─────────────────────────────
    #   plumbing
    # ─────────────────────────────

    def notify(self, title: str, description: str, variant: str = "default") -> None:
        self.notifications.append(Notification(title, description, variant))

    def _request(
        self,
        method: str,
        url: str,
        failure: Optional[str] = None,
        title: str = "Error",
        **kwargs,
    ) -> Optional[httpx.Response]:
        """Send a request; on failure log, notify and return None.

        With ``failure`` unset the service's own message is shown verbatim.
        """
        try:
            response = self.http.request(method, url, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            detail = _error_detail(e.response)
            logger.error("%s %s failed (%s): %s", method, url, e.response.status_code, detail)
            self.notify(title, failure or detail, "destructive")
            return None
        except httpx.HTTPError as e:
            logger.error("%s %s failed: %s", method, url, e)
            self.notify(title, failure or str(e), "destructive")
            return None
        return response

    def _request_json(
        self,
        method: str,
        url: str,
        failure: Optional[str] = None,
        title: str = "Error",
        **kwargs,
    ) -> Optional[Any]:
        """Like ``_request`` but returns the decoded body; a non-JSON body is a failure too."""
        response = self._request(method, url, failure, title, **kwargs)
        if response is None:
            return None
        try:
            return response.json()
        except ValueError:
            logger.error("%s %s returned a non-JSON body (%s)", method, url, response.headers.get("content-type"))
            self.notify(title, failure or "Unexpected response from server", "destructive")
            return None

    def _key(self, kind: str, *parts: Any) -> tuple:
        user = self.session.current
        return (kind, user.id if user else None) + parts

    def _on_session_change(self, event: SessionEvent) -> None:
        # Nothing cached for one identity may leak to the next.
        logger.debug("Resetting client state on %s", event.name)
        self.cache.clear()
        self.generations.reset()
        self.expenses = []
        self.overview = None
        self.analytics = None

    def refresh(self) -> None:
        self.refresh_count += 1
        self.cache.clear()

    # ─────────────────────────────
    #   auth
    # ─────────────────────────────

    def restore_session(self) -> Optional[SessionUser]:
        try:
            response = self.http.get("/auth/me")
        except httpx.HTTPError as e:
            logger.warning("Could not restore session: %s", e)
            return None
        if response.status_code != 200:
            return None
        try:
            user = SessionUser.from_payload(response.json())
        except (ValueError, KeyError, TypeError) as e:
            logger.warning("Could not restore session: %s", e)
            return None
        self.session.start(user, INITIAL_SESSION)
        return user

    def sign_up(self, email: str, password: str, display_name: Optional[str] = None) -> Optional[Dict[str, Any]]:
        payload = {"email": email, "password": password}
        if display_name:
            payload["display_name"] = display_name
        data = self._request_json("POST", "/auth/register", title="Sign up failed", json=payload)
        if data is None:
            return None
        self.notify("Account created!", "You can now sign in.")
        return data

    def sign_in(self, email: str, password: str) -> Optional[SessionUser]:
        self.session.end()
        data = self._request_json(
            "POST", "/auth/login", title="Sign in failed", json={"email": email, "password": password}
        )
        if data is None:
            return None
        user = SessionUser.from_payload(data)
        self.session.start(user)
        return user

    def sign_out(self) -> None:
        try:
            self.http.post("/auth/logout")
        except httpx.HTTPError as e:
            logger.warning("Logout request failed: %s", e)
        self.http.cookies.clear()
        self.session.end()

    # ─────────────────────────────
    #   expenses
    # ─────────────────────────────

    def list_expenses(
        self,
        on: Optional[date] = None,
        order: str = "desc",
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> Optional[List[Dict[str, Any]]]:
        """Fetch expenses of one day (``on``) or of the inclusive ``start``..``end`` range."""
        key = self._key("expenses", on, start, end, order)
        token = self.generations.begin("expenses")
        if key in self.cache:
            data = self.cache.get(key)
        else:
            params = {"order": order}
            if on is not None:
                params["expense_date"] = on.isoformat()
            if start is not None:
                params["start"] = start.isoformat()
            if end is not None:
                params["end"] = end.isoformat()
            data = self._request_json("GET", "/expenses", "Failed to fetch expenses", params=params)
            if data is None:
                return None

        if not self.generations.is_current("expenses", token):
            logger.debug("Discarding superseded expenses response")
            return None
        self.cache.set(key, data)
        self.expenses = data
        return data

    def add_expense(
        self,
        amount: Amount,
        category: str = "other",
        description: str = "",
        expense_date: Optional[date] = None,
    ) -> Optional[Dict[str, Any]]:
        try:
            value = _parse_amount(amount)
        except ValueError:
            value = None
        if value is None:
            self.notify("Error", "Please enter a valid amount", "destructive")
            return None

        payload = {"amount": value, "category": category, "description": description}
        if expense_date is not None:
            payload["expense_date"] = expense_date.isoformat()
        data = self._request_json("POST", "/expenses", "Failed to add expense", json=payload)
        if data is None:
            return None
        self.notify("Expense added!", f"{description or category} has been recorded.")
        self.refresh()
        return data

    def update_expense(self, expense_id: str, **changes: Any) -> Optional[Dict[str, Any]]:
        if isinstance(changes.get("expense_date"), date):
            changes["expense_date"] = changes["expense_date"].isoformat()
        data = self._request_json("PATCH", f"/expenses/{expense_id}", "Failed to update expense", json=changes)
        if data is None:
            return None
        self.notify("Expense updated", "Your changes have been saved.")
        self.refresh()
        return data

    def delete_expense(self, expense_id: str) -> bool:
        response = self._request("DELETE", f"/expenses/{expense_id}", "Failed to delete expense")
        if response is None:
            return False
        self.expenses = [e for e in self.expenses if str(e["id"]) != str(expense_id)]
        self.notify("Expense deleted", "The expense has been successfully removed.")
        self.refresh()
        return True

    # ─────────────────────────────
    #   budget & income
    # ─────────────────────────────

    def load_overview(self, month: Optional[int] = None, year: Optional[int] = None) -> Optional[Dict[str, Any]]:
        today = date.today()
        month = month or today.month
        year = year or today.year

        key = self._key("overview", month, year)
        token = self.generations.begin("overview")
        if key in self.cache:
            data = self.cache.get(key)
        else:
            data = self._request_json(
                "GET", "/overview", "Failed to load budget", params={"month": month, "year": year}
            )
            if data is None:
                return None

        if not self.generations.is_current("overview", token):
            logger.debug("Discarding superseded overview response")
            return None
        self.cache.set(key, data)
        self.overview = data
        return data

    def _save_period_row(self, path: str, field: str, row_id: Optional[str], value: float, month: int, year: int) -> bool:
        # Update the cached row of the period when there is one, insert otherwise.
        if row_id:
            response = self._request("PATCH", f"{path}/{row_id}", "Failed to save data", json={field: value})
        else:
            response = self._request(
                "POST", path, "Failed to save data", json={field: value, "month": month, "year": year}
            )
        return response is not None

    def save_budget_and_income(
        self,
        budget: Amount = None,
        income: Amount = None,
        month: Optional[int] = None,
        year: Optional[int] = None,
    ) -> bool:
        today = date.today()
        month = month or today.month
        year = year or today.year

        try:
            budget_value = _parse_amount(budget)
            income_value = _parse_amount(income)
        except ValueError:
            self.notify("Error", "Please enter a valid amount", "destructive")
            return False

        overview = self.overview
        if overview is None or (overview["month"], overview["year"]) != (month, year):
            overview = self.load_overview(month, year)
            if overview is None:
                return False

        ok = True
        if budget_value is not None:
            ok = self._save_period_row(
                "/budgets", "limit_amount", overview.get("budget_id"), budget_value, month, year
            )
        if ok and income_value is not None:
            ok = self._save_period_row(
                "/incomes", "amount", overview.get("income_id"), income_value, month, year
            )

        self.cache.invalidate("overview")
        self.load_overview(month, year)
        if ok:
            self.notify("Updated successfully!", "Your budget and income have been saved.")
        return ok

    # ─────────────────────────────
    #   analytics
    # ─────────────────────────────

    def load_analytics(self, range_token: str = "month") -> Optional[Dict[str, Any]]:
        key = self._key("analytics", range_token)
        token = self.generations.begin("analytics")
        if key in self.cache:
            data = self.cache.get(key)
        else:
            data = self._request_json(
                "GET", "/analytics", "Failed to load analytics", params={"range": range_token}
            )
            if data is None:
                return None

        if not self.generations.is_current("analytics", token):
            logger.debug("Discarding superseded analytics response for %s", range_token)
            return None
        self.cache.set(key, data)
        self.analytics = data
        return data
