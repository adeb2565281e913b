"""Roleboard client implementation"""
import time
from datetime import datetime
from typing import Any, Dict, List, Optional

import requests


class RoleboardAPIError(Exception):
    """Non-2xx response from the Roleboard API.

    ``error`` is the machine-readable code from the response body
    (e.g. ``token_expired``, ``validation_error``, ``conflict``).
    """

    def __init__(self, status_code: int, error: str, message: str, details: Optional[List[Any]] = None):
        super().__init__(f"{status_code} {error}: {message}")
        self.status_code = status_code
        self.error = error
        self.message = message
        self.details = details or []


class RoleboardClient:
    """Client for the Roleboard admin API.

    Authentication is handled transparently:
    - Pass ``email`` and ``password`` at construction, or call :meth:`login`.
    - The bearer token is cached and re-issued 60 seconds before expiry.
    - Every request carries an explicit ``timeout``.
    """

    def __init__(
        self,
        base_url: str,
        email: Optional[str] = None,
        password: Optional[str] = None,
        timeout: float = 10.0,
        session: Optional[Any] = None,
    ):
        """
        Initialize Roleboard client.

        Args:
            base_url: Base URL of the backend (e.g. ``http://localhost:8000``).
            email:    Login email, used to obtain a token on first use.
            password: Login password.
            timeout:  Seconds before a request is abandoned.
            session:  A ``requests.Session``-compatible object (defaults to a new session).
        """
        self.base_url = base_url.rstrip("/")
        self.email = email
        self.password = password
        self.timeout = timeout
        self.session = session if session is not None else requests.Session()

        self._token: Optional[str] = None
        self._token_expires_at: float = 0.0
        self.user: Optional[Dict[str, Any]] = None

    # ---------------------------------------------------------------------------
    # Internal token management
    # ---------------------------------------------------------------------------

    @staticmethod
    def _raise_for_error(response: Any) -> None:
        if response.status_code < 400:
            return
        try:
            body = response.json()
        except ValueError:
            body = {}
        raise RoleboardAPIError(
            response.status_code,
            body.get("error", "http_error"),
            body.get("message", response.text),
            body.get("details"),
        )

    def _ensure_token(self) -> str:
        """Return a valid token, logging in again if it is absent or about to expire.

        Raises:
            ValueError: If no credentials are configured.
            RoleboardAPIError: If the login fails.
        """
        if self._token is None or time.time() >= self._token_expires_at - 60:
            if not self.email or not self.password:
                raise ValueError("email and password required; call login() first")
            self.login(self.email, self.password)
        return self._token  # type: ignore[return-value]

    def _request(self, method: str, endpoint: str, **kwargs: Any) -> Any:
        """Make an authenticated request and return the decoded JSON body.

        Raises:
            RoleboardAPIError: On non-2xx responses.
        """
        token = self._ensure_token()

        headers = kwargs.pop("headers", {})
        headers["Authorization"] = f"Bearer {token}"

        response = self.session.request(
            method,
            f"{self.base_url}{endpoint}",
            headers=headers,
            timeout=self.timeout,
            **kwargs,
        )
        self._raise_for_error(response)
        return response.json()

    # ========== Authentication ==========

    def login(self, email: Optional[str] = None, password: Optional[str] = None) -> Dict[str, Any]:
        """Exchange credentials for a token. Returns the account."""
        email = email or self.email
        password = password or self.password
        response = self.session.request(
            "POST",
            f"{self.base_url}/api/auth/login",
            json={"email": email, "password": password},
            timeout=self.timeout,
        )
        self._raise_for_error(response)
        data = response.json()

        self.email, self.password = email, password
        self._token = data["token"]
        self._token_expires_at = time.time() + data["expires_in"]
        self.user = data["user"]
        return data["user"]

    def logout(self) -> None:
        """Revoke the current token server-side and clear the local cache."""
        if not self._token:
            return
        self._request("POST", "/api/auth/logout")
        self._token = None
        self._token_expires_at = 0.0

    def profile(self) -> Dict[str, Any]:
        return self._request("GET", "/api/auth/profile")["user"]

    def update_profile(self, name: str) -> Dict[str, Any]:
        return self._request("PUT", "/api/auth/profile", json={"name": name})["user"]

    def change_password(self, current_password: str, new_password: str) -> None:
        self._request(
            "POST",
            "/api/auth/change-password",
            json={"current_password": current_password, "new_password": new_password},
        )
        self.password = new_password

    # ========== Users ==========

    def list_users(self, role: Optional[str] = None) -> List[Dict[str, Any]]:
        params = {"role": role} if role else None
        return self._request("GET", "/api/users", params=params)["users"]

    def create_user(self, email: str, name: str, password: str) -> Dict[str, Any]:
        return self._request(
            "POST", "/api/users", json={"email": email, "name": name, "password": password}
        )["user"]

    def update_user(
        self,
        account_id: str,
        name: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> Dict[str, Any]:
        payload = {k: v for k, v in {"name": name, "is_active": is_active}.items() if v is not None}
        return self._request("PUT", f"/api/users/{account_id}", json=payload)["user"]

    def delete_user(self, account_id: str) -> None:
        self._request("DELETE", f"/api/users/{account_id}")

    # ========== Sub-admins ==========

    def list_sub_admins(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/api/sub-admins")["sub_admins"]

    def create_sub_admin(
        self,
        email: str,
        name: str,
        password: str,
        permissions: List[str],
    ) -> Dict[str, Any]:
        """
        Create a sub-admin (main-admin only).

        Args:
            permissions: Subset of the sub-admin catalog, e.g. ``["view_all_users", "edit_user"]``.
        """
        return self._request(
            "POST",
            "/api/sub-admins",
            json={"email": email, "name": name, "password": password, "permissions": permissions},
        )["sub_admin"]

    def update_sub_admin(
        self,
        account_id: str,
        name: Optional[str] = None,
        permissions: Optional[List[str]] = None,
        is_active: Optional[bool] = None,
    ) -> Dict[str, Any]:
        payload = {
            k: v
            for k, v in {"name": name, "permissions": permissions, "is_active": is_active}.items()
            if v is not None
        }
        return self._request("PUT", f"/api/sub-admins/{account_id}", json=payload)["sub_admin"]

    def delete_sub_admin(self, account_id: str) -> None:
        self._request("DELETE", f"/api/sub-admins/{account_id}")

    # ========== Dashboard ==========

    def get_stats(self) -> Dict[str, Any]:
        return self._request("GET", "/api/dashboard/stats")

    def get_audit_logs(
        self,
        limit: int = 100,
        offset: int = 0,
        user_id: Optional[str] = None,
        action: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Returns ``{"logs": [...], "total": n, "limit": ..., "offset": ...}``."""
        params: Dict[str, Any] = {"limit": limit, "offset": offset}
        if user_id:
            params["user_id"] = user_id
        if action:
            params["action"] = action
        return self._request("GET", "/api/dashboard/audit-logs", params=params)

    # ========== Notifications ==========

    def list_notifications(self, limit: Optional[int] = None) -> Dict[str, Any]:
        """Returns ``{"notifications": [...], "unread_count": n}``."""
        params = {"limit": limit} if limit else None
        return self._request("GET", "/api/notifications", params=params)

    def unread_count(self) -> int:
        return self._request("GET", "/api/notifications/unread-count")["unread_count"]

    def broadcast(
        self,
        title: str,
        message: str,
        type: str = "info",
        priority: str = "medium",
        expires_at: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        """Send an announcement to every role (main-admin only)."""
        payload: Dict[str, Any] = {"title": title, "message": message, "type": type, "priority": priority}
        if expires_at is not None:
            payload["expires_at"] = expires_at.isoformat()
        return self._request("POST", "/api/notifications", json=payload)

    def trigger(
        self,
        action: str,
        target_name: Optional[str] = None,
        target_id: Optional[str] = None,
        count: Optional[int] = None,
        details: Optional[str] = None,
    ) -> int:
        """Run a rule-driven action as the caller; returns the number of notifications created."""
        payload = {
            k: v
            for k, v in {
                "action": action,
                "target_name": target_name,
                "target_id": target_id,
                "count": count,
                "details": details,
            }.items()
            if v is not None
        }
        return self._request("POST", "/api/notifications/trigger", json=payload)["notifications"]

    def mark_read(self, notification_id: str) -> None:
        self._request("PUT", f"/api/notifications/{notification_id}/read")

    def mark_all_read(self) -> int:
        return self._request("PUT", "/api/notifications/mark-all-read")["marked_count"]

    def delete_notification(self, notification_id: str) -> None:
        self._request("DELETE", f"/api/notifications/{notification_id}")
