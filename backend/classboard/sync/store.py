"""Async client for the classboard REST API."""

from __future__ import annotations

import logging
from datetime import date, time
from typing import Any, Dict, List, Optional

import httpx

from classboard.core.config import settings
from classboard.sync.errors import (
    NETWORK_MESSAGE,
    ErrorKind,
    StoreError,
    class_full_error,
    classify,
    offline_error,
)

logger = logging.getLogger(__name__)

Row = Dict[str, Any]


class RemoteStore:
    """One method per remote data operation; failures raise ``StoreError``.

    Mutations are refused locally while ``online`` is False.
    """

    def __init__(
        self,
        base_url: str = f"http://localhost:8000{settings.API_V1_STR}",
        token: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.online = True
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._client = httpx.AsyncClient(base_url=self.base_url, headers=headers, transport=transport)

    async def __aenter__(self) -> "RemoteStore":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def set_token(self, token: Optional[str]) -> None:
        if token:
            self._client.headers["Authorization"] = f"Bearer {token}"
        else:
            self._client.headers.pop("Authorization", None)

    async def _request(self, method: str, path: str, *, mutation: bool = False, **kwargs) -> Any:
        if mutation and not self.online:
            raise offline_error()
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.TransportError as e:
            logger.warning(f"{method} {path} failed: {e}")
            raise StoreError(ErrorKind.NETWORK, NETWORK_MESSAGE) from e

        if response.is_error:
            try:
                payload = response.json()
            except ValueError:
                payload = {"detail": response.text}
            error = classify(response.status_code, payload)
            logger.debug(f"{method} {path} -> {response.status_code}: {error.message}")
            raise error
        return response.json()

    # Profiles

    async def get_own_profile(self) -> Row:
        return await self._request("GET", "/profiles/me")

    async def get_profile(self, user_id: str) -> Row:
        return await self._request("GET", f"/profiles/{user_id}")

    async def update_profile(self, user_id: str, **updates: Any) -> Row:
        return await self._request("PATCH", f"/profiles/{user_id}", json=updates, mutation=True)

    async def get_user_classes(self, user_id: str) -> List[Row]:
        return await self._request("GET", f"/profiles/{user_id}/classes")

    # Classes

    async def create_class(
        self,
        name: str,
        description: str,
        member_limit: int = settings.DEFAULT_MEMBER_LIMIT,
        prodi: str = settings.DEFAULT_PRODI,
    ) -> Row:
        payload = {
            "name": name.upper(),
            "description": description,
            "member_limit": member_limit or settings.DEFAULT_MEMBER_LIMIT,
            "prodi": prodi or settings.DEFAULT_PRODI,
        }
        return await self._request("POST", "/classes/", json=payload, mutation=True)

    async def update_class(self, class_id: str, **updates: Any) -> Row:
        return await self._request("PATCH", f"/classes/{class_id}", json=updates, mutation=True)

    async def get_class_with_stats(self, class_id: str) -> Row:
        return await self._request("GET", f"/classes/{class_id}")

    async def search_classes(self, term: str) -> List[Row]:
        return await self._request("GET", "/classes/search", params={"q": term})

    # Memberships

    async def request_join(self, class_id: str) -> Row:
        """Ask to join a class; fails with ``CLASS_FULL`` before inserting when full."""
        if not self.online:
            raise offline_error()
        stats = await self.get_class_with_stats(class_id)
        if stats.get("is_full"):
            raise class_full_error(stats["member_limit"])
        return await self._request("POST", f"/classes/{class_id}/members", mutation=True)

    async def get_class_members(self, class_id: str) -> List[Row]:
        return await self._request("GET", f"/classes/{class_id}/members")

    async def get_membership_status(self, class_id: str, user_id: str) -> Optional[Row]:
        try:
            return await self._request("GET", f"/classes/{class_id}/members/by-user/{user_id}")
        except StoreError as e:
            if e.kind is ErrorKind.NOT_FOUND:
                return None
            raise

    async def update_member_status(self, member_id: str, status: str) -> Row:
        return await self._request("PATCH", f"/members/{member_id}", json={"status": status}, mutation=True)

    # Schedules

    async def create_schedule(
        self,
        class_id: str,
        title: str,
        description: str,
        schedule_date: date | str,
        schedule_time: time | str,
        type: str = "homework",
    ) -> Row:
        payload = {
            "title": title,
            "description": description,
            "schedule_date": str(schedule_date),
            "schedule_time": str(schedule_time),
            "type": type,
        }
        return await self._request("POST", f"/classes/{class_id}/schedules", json=payload, mutation=True)

    async def get_class_schedules(self, class_id: str) -> List[Row]:
        return await self._request("GET", f"/classes/{class_id}/schedules")

    async def update_schedule(self, schedule_id: str, **updates: Any) -> Row:
        payload = {key: str(value) if isinstance(value, (date, time)) else value for key, value in updates.items()}
        return await self._request("PATCH", f"/schedules/{schedule_id}", json=payload, mutation=True)

    async def delete_schedule(self, schedule_id: str) -> None:
        await self._request("DELETE", f"/schedules/{schedule_id}", mutation=True)

    # Notifications

    async def get_notifications(self, limit: int = settings.NOTIFICATIONS_LIMIT) -> List[Row]:
        return await self._request("GET", "/notifications/", params={"limit": limit})

    async def mark_notification_read(self, notification_id: str) -> Row:
        return await self._request(
            "PATCH", f"/notifications/{notification_id}", json={"is_read": True}, mutation=True
        )

    async def mark_all_notifications_read(self) -> int:
        result = await self._request("PATCH", "/notifications/mark-all-read", mutation=True)
        return result["marked"]
