"""
View controllers over the shared ``AppContext``.

Each view owns its rows, its control states and one ``error`` string. Async
operations run inside ``_guard``: store errors become translated messages,
anything unexpected is logged and replaced by a generic message, and nothing
propagates to the caller. Operations return True on success.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, NamedTuple, Optional

from classboard.core.config import settings
from classboard.schemas.change import members_topic, notifications_topic, schedules_topic
from classboard.sync import forms
from classboard.sync.errors import ErrorKind, StoreError, ValidationFailed, offline_error
from classboard.sync.permissions import can_manage_class
from classboard.sync.reconciler import INSERT_AT_END, INSERT_AT_START, Reconciler
from classboard.sync.schedules import (
    FILTER_ALL,
    dashboard_counts,
    filter_schedules,
    sort_schedules,
    time_status,
)
from classboard.sync.session import AppContext, use_app_context

logger = logging.getLogger(__name__)

Row = Dict[str, Any]

GENERIC_ERROR = "Terjadi kesalahan. Silakan coba lagi."


def permission_denied(message: str = "permission denied") -> StoreError:
    return StoreError(ErrorKind.UNAUTHORIZED, message)


class View:
    def __init__(self, context: Optional[AppContext] = None) -> None:
        self.context = context or use_app_context()
        self.error: Optional[str] = None
        self.field_errors: Dict[str, str] = {}
        self.busy = False
        self.context.register(self)

    @property
    def store(self):
        return self.context.store

    @property
    def online(self) -> bool:
        return self.context.online

    @property
    def user(self) -> Optional[Row]:
        return self.context.user

    def clear_error(self) -> None:
        self.error = None
        self.field_errors = {}

    @asynccontextmanager
    async def _guard(self, action: str, fallback: str = GENERIC_ERROR) -> AsyncIterator[None]:
        self.clear_error()
        self.busy = True
        try:
            yield
        except ValidationFailed as e:
            self.error = e.user_message
            self.field_errors = e.errors
        except StoreError as e:
            logger.info(f"{type(self).__name__}: {action} failed: {e!r}")
            self.error = e.user_message
        except Exception:
            logger.exception(f"{type(self).__name__}: {action} failed")
            self.error = fallback
        finally:
            self.busy = False

    def _require_online(self, message: Optional[str] = None) -> None:
        if not self.online:
            raise offline_error(message) if message else offline_error()

    def close(self) -> None:
        self.context.unregister(self)


class ScheduleBoard(View):
    """Schedules of one class, filtered and sorted for display."""

    def __init__(self, class_id: str, context: Optional[AppContext] = None) -> None:
        super().__init__(context)
        self.class_id = str(class_id)
        self.classroom: Optional[Row] = None
        self.classes: List[Row] = []
        self.type_filter = FILTER_ALL
        self.search = ""
        self.sort_by = "date"
        self.reconciler = Reconciler(
            "schedules",
            fetch=self.store.get_class_schedules,
            topic_for=schedules_topic,
            feed=self.context.feed,
            insert_at=INSERT_AT_END,
        )

    @property
    def schedules(self) -> List[Row]:
        return self.reconciler.rows

    @property
    def visible(self) -> List[Row]:
        return sort_schedules(filter_schedules(self.schedules, self.type_filter, self.search), self.sort_by)

    @property
    def can_manage(self) -> bool:
        return can_manage_class(self.user, self.classroom)

    @property
    def can_add(self) -> bool:
        return self.can_manage and self.online

    @property
    def can_edit(self) -> bool:
        return self.can_manage and self.online

    @property
    def can_delete(self) -> bool:
        return self.can_manage and self.online

    def counts(self) -> Dict[str, int]:
        return dashboard_counts(self.schedules, self.classroom)

    def status_of(self, row: Row):
        return time_status(row)

    async def open(self, follow: bool = True) -> bool:
        async with self._guard("open", "Terjadi kesalahan saat memuat data dashboard"):
            self.classroom = await self.store.get_class_with_stats(self.class_id)
            await self.reconciler.activate(self.class_id)
            if self.reconciler.error:
                self.error = self.reconciler.error
            elif follow:
                self.reconciler.start()
        return self.error is None

    async def load_classes(self) -> bool:
        """Load the classes the user is an approved member of."""
        async with self._guard("load classes"):
            memberships = await self.store.get_user_classes(self.context.user_id)
            self.classes = [membership["classroom"] for membership in memberships]
        return self.error is None

    async def select_class(self, class_id: str, follow: bool = True) -> bool:
        """Switch the board to another class; the old feed is dropped."""
        self.class_id = str(class_id)
        self.classroom = None
        self.reconciler.deactivate()
        self.reconciler.collection.clear()
        return await self.open(follow=follow)

    def sync(self) -> int:
        return self.reconciler.apply_pending()

    async def add_schedule(self, **data: Any) -> Optional[Row]:
        created: Optional[Row] = None
        async with self._guard("add schedule", "Terjadi kesalahan saat menyimpan jadwal. Silakan coba lagi."):
            if not self.can_manage:
                raise permission_denied()
            self._require_online()
            forms.require_valid(forms.validate_schedule(data))
            created = await self.store.create_schedule(
                self.class_id,
                title=data["title"].strip(),
                description=data["description"].strip(),
                schedule_date=data["schedule_date"],
                schedule_time=data["schedule_time"],
                type=data["type"],
            )
            self.reconciler.upsert_local(created)
        return created

    async def update_schedule(self, schedule_id: str, **data: Any) -> bool:
        async with self._guard("update schedule"):
            if not self.can_manage:
                raise permission_denied()
            self._require_online()
            current = self.reconciler.collection.get(schedule_id) or {}
            forms.require_valid(forms.validate_schedule_edit({**current, **data}))
            if "title" in data:
                data["title"] = data["title"].strip()
            if "description" in data:
                data["description"] = data["description"].strip()
            await self.store.update_schedule(schedule_id, **data)
            await self.reconciler.reload()
        return self.error is None

    async def delete_schedule(self, schedule_id: str) -> bool:
        async with self._guard("delete schedule"):
            if not self.can_manage:
                raise permission_denied()
            self._require_online()
            await self.store.delete_schedule(schedule_id)
            await self.reconciler.reload()
        return self.error is None

    def close(self) -> None:
        self.reconciler.deactivate()
        super().close()


class MemberRoster(View):
    """Members of one class; the creator approves or rejects requests."""

    OFFLINE_MESSAGE = "Tidak dapat memproses anggota saat offline"

    def __init__(self, class_id: str, context: Optional[AppContext] = None) -> None:
        super().__init__(context)
        self.class_id = str(class_id)
        self.classroom: Optional[Row] = None
        self.reconciler = Reconciler(
            "members",
            fetch=self.store.get_class_members,
            topic_for=members_topic,
            feed=self.context.feed,
            insert_at=INSERT_AT_START,
        )

    @property
    def members(self) -> List[Row]:
        return self.reconciler.rows

    def with_status(self, status: str) -> List[Row]:
        return [row for row in self.members if row.get("status") == status]

    @property
    def pending(self) -> List[Row]:
        return self.with_status("pending")

    @property
    def approved(self) -> List[Row]:
        return self.with_status("approved")

    @property
    def rejected(self) -> List[Row]:
        return self.with_status("rejected")

    @property
    def can_manage(self) -> bool:
        return can_manage_class(self.user, self.classroom)

    @property
    def can_approve(self) -> bool:
        return self.can_manage and self.online

    @property
    def can_reject(self) -> bool:
        return self.can_manage and self.online

    async def open(self, follow: bool = True) -> bool:
        async with self._guard("open"):
            self.classroom = await self.store.get_class_with_stats(self.class_id)
            await self.reconciler.activate(self.class_id)
            if self.reconciler.error:
                self.error = self.reconciler.error
            elif follow:
                self.reconciler.start()
        return self.error is None

    def sync(self) -> int:
        return self.reconciler.apply_pending()

    async def _set_status(self, member_id: str, status: str, fallback: str) -> bool:
        async with self._guard(f"set member {status}", fallback):
            if not self.can_manage:
                raise permission_denied()
            self._require_online(self.OFFLINE_MESSAGE)
            await self.store.update_member_status(member_id, status)
            await self.reconciler.reload()
            self.classroom = await self.store.get_class_with_stats(self.class_id)
        return self.error is None

    async def approve(self, member_id: str) -> bool:
        return await self._set_status(member_id, "approved", "Terjadi kesalahan saat menyetujui anggota")

    async def reject(self, member_id: str) -> bool:
        return await self._set_status(member_id, "rejected", "Terjadi kesalahan saat menolak anggota")

    def close(self) -> None:
        self.reconciler.deactivate()
        super().close()


class NotificationInbox(View):
    def __init__(self, context: Optional[AppContext] = None, limit: int = settings.NOTIFICATIONS_LIMIT) -> None:
        super().__init__(context)
        self.limit = limit
        self.reconciler = Reconciler(
            "notifications",
            fetch=self._fetch,
            topic_for=notifications_topic,
            feed=self.context.feed,
            insert_at=INSERT_AT_START,
        )

    async def _fetch(self, user_id: str) -> List[Row]:
        return await self.store.get_notifications(limit=self.limit)

    @property
    def notifications(self) -> List[Row]:
        return self.reconciler.rows

    @property
    def unread_count(self) -> int:
        return sum(1 for row in self.notifications if not row.get("is_read"))

    async def open(self, follow: bool = True) -> bool:
        async with self._guard("open"):
            await self.reconciler.activate(self.context.user_id)
            if self.reconciler.error:
                self.error = self.reconciler.error
            elif follow:
                self.reconciler.start()
        return self.error is None

    def sync(self) -> int:
        return self.reconciler.apply_pending()

    async def mark_read(self, notification_id: str) -> bool:
        async with self._guard("mark read"):
            self._require_online()
            await self.store.mark_notification_read(notification_id)
            await self.reconciler.reload()
        return self.error is None

    async def mark_all_read(self) -> bool:
        async with self._guard("mark all read"):
            self._require_online()
            await self.store.mark_all_notifications_read()
            await self.reconciler.reload()
        return self.error is None

    def close(self) -> None:
        self.reconciler.deactivate()
        super().close()


class JoinButton(NamedTuple):
    label: str
    disabled: bool


class JoinClassView(View):
    """Search classes and request to join one."""

    DUPLICATE_MESSAGE = "Anda sudah mengirim permintaan atau sudah bergabung dengan kelas ini"

    def __init__(self, context: Optional[AppContext] = None) -> None:
        super().__init__(context)
        self.results: List[Row] = []
        self.searched = False
        self.joining_class_id: Optional[str] = None

    def result(self, class_id: str) -> Optional[Row]:
        for row in self.results:
            if str(row["id"]) == str(class_id):
                return row
        return None

    @staticmethod
    def capacity_label(row: Row) -> str:
        return f"{row.get('current_members', 0)}/{row.get('member_limit', 0)}"

    def button_state(self, row: Row) -> JoinButton:
        status = row.get("membership_status")
        if self.joining_class_id == str(row["id"]):
            return JoinButton("Mengirim...", True)
        if status == "approved":
            return JoinButton("Sudah Bergabung", True)
        if status == "pending":
            return JoinButton("Menunggu Persetujuan", True)
        if status == "rejected":
            return JoinButton("Ditolak", True)
        if row.get("is_full"):
            return JoinButton("Penuh", True)
        if not row.get("is_active", True):
            return JoinButton("Tidak Aktif", True)
        return JoinButton("Gabung", not self.online)

    async def search(self, term: str) -> bool:
        term = term.strip()
        if not term:
            self.results = []
            self.searched = False
            return False
        async with self._guard("search"):
            rows = await self.store.search_classes(term)
            for row in rows:
                membership = await self.store.get_membership_status(row["id"], self.context.user_id)
                row["membership_status"] = membership["status"] if membership else None
            self.results = rows
            self.searched = True
        if self.error:
            self.results = []
        return self.error is None

    async def join(self, class_id: str) -> bool:
        row = self.result(class_id)
        async with self._guard("join"):
            if row is None:
                raise StoreError(ErrorKind.NOT_FOUND, "Kelas tidak ditemukan")
            status = row.get("membership_status")
            if status == "approved":
                raise StoreError(ErrorKind.CONSTRAINT_VIOLATION, "Anda sudah menjadi anggota kelas ini")
            if status == "pending":
                raise StoreError(
                    ErrorKind.CONSTRAINT_VIOLATION,
                    "Anda sudah mengirim permintaan ke kelas ini. Menunggu persetujuan admin.",
                )
            if status == "rejected":
                raise StoreError(
                    ErrorKind.CONSTRAINT_VIOLATION, "Permintaan Anda telah ditolak oleh admin kelas ini"
                )
            if row.get("is_full"):
                raise StoreError(
                    ErrorKind.CAPACITY_EXCEEDED,
                    f"Kelas {row['name']} sudah penuh ({row['member_limit']}/{row['member_limit']} anggota)",
                )
            self._require_online()

            self.joining_class_id = str(class_id)
            try:
                await self.store.request_join(str(class_id))
            except StoreError as e:
                if e.kind is ErrorKind.CAPACITY_EXCEEDED:
                    row["is_full"] = True
                if e.is_duplicate:
                    raise StoreError(e.kind, self.DUPLICATE_MESSAGE, status_code=e.status_code) from e
                raise
            finally:
                self.joining_class_id = None
            row["membership_status"] = "pending"
        return self.error is None


class CreateClassView(View):
    def __init__(self, context: Optional[AppContext] = None) -> None:
        super().__init__(context)
        self.created: Optional[Row] = None

    async def _existing_names(self, name: str) -> List[str]:
        try:
            return [row["name"] for row in await self.store.search_classes(name.strip())]
        except StoreError as e:
            logger.warning(f"Duplicate name check failed: {e!r}")
            return []

    async def create(
        self,
        name: str,
        description: str,
        member_limit: int = settings.DEFAULT_MEMBER_LIMIT,
        prodi: str = settings.DEFAULT_PRODI,
    ) -> Optional[Row]:
        data = {"name": name, "description": description, "member_limit": member_limit, "prodi": prodi}
        async with self._guard("create class", "Terjadi kesalahan saat membuat kelas. Silakan coba lagi."):
            if self.context.role != "creator":
                raise permission_denied()
            self._require_online()
            errors = forms.validate_class(data)
            if "name" not in errors:
                errors = forms.validate_class(data, await self._existing_names(name))
            forms.require_valid(errors)
            self.created = await self.store.create_class(
                name=name.strip(),
                description=description.strip(),
                member_limit=member_limit,
                prodi=prodi.strip(),
            )
        return self.created if self.error is None else None


class ClassSettingsView(View):
    """Creator-only editing of name, description, prodi and activity."""

    DENIED_MESSAGE = "Anda tidak memiliki izin untuk mengakses pengaturan kelas ini"

    def __init__(self, classroom: Row, context: Optional[AppContext] = None) -> None:
        super().__init__(context)
        self.classroom = classroom
        self.access_denied = False

    @property
    def can_save(self) -> bool:
        return not self.access_denied and can_manage_class(self.user, self.classroom) and self.online

    async def open(self) -> bool:
        if not can_manage_class(self.user, self.classroom):
            self.access_denied = True
            self.error = self.DENIED_MESSAGE
            return False
        async with self._guard("open"):
            self.classroom = await self.store.get_class_with_stats(self.classroom["id"])
        return self.error is None

    async def save(
        self,
        name: str,
        description: str,
        prodi: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> bool:
        if self.access_denied or not can_manage_class(self.user, self.classroom):
            self.error = "Anda tidak memiliki izin untuk mengubah kelas ini"
            return False
        async with self._guard("save settings"):
            self._require_online()
            forms.require_valid(forms.validate_class_settings({"name": name, "description": description}))
            updates: Dict[str, Any] = {"name": name.strip(), "description": description.strip()}
            if prodi is not None:
                updates["prodi"] = prodi.strip()
            if is_active is not None:
                updates["is_active"] = is_active
            self.classroom = await self.store.update_class(self.classroom["id"], **updates)
        return self.error is None


class ProfileView(View):
    ROLE_LOCKED_MESSAGE = "Role sudah dipilih dan tidak dapat diubah"

    def __init__(self, context: Optional[AppContext] = None) -> None:
        super().__init__(context)
        self.profile: Optional[Row] = self.context.user

    async def open(self) -> bool:
        async with self._guard("open"):
            self.profile = await self.store.get_own_profile()
            self.context.user = self.profile
        return self.error is None

    async def save(self, full_name: str) -> bool:
        async with self._guard("save profile"):
            self._require_online()
            forms.require_valid(forms.validate_profile({"full_name": full_name}))
            self.profile = await self.store.update_profile(self.context.user_id, full_name=full_name.strip())
            self.context.user = self.profile
        return self.error is None

    async def choose_role(self, role: str) -> bool:
        async with self._guard("choose role", "Terjadi kesalahan saat menyimpan role. Silakan coba lagi."):
            forms.require_valid(forms.validate_role(role))
            current = self.context.role
            if current and current != role:
                raise StoreError(ErrorKind.CONSTRAINT_VIOLATION, self.ROLE_LOCKED_MESSAGE)
            self._require_online()
            self.profile = await self.store.update_profile(self.context.user_id, role=role)
            self.context.user = self.profile
        return self.error is None
