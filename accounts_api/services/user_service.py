"""
User account use cases over the record store.

Every call to UserService.handle either returns a UserResponse or raises a
UserError; store failures are wrapped and never reach the caller as-is.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional
import json

from starlette.concurrency import run_in_threadpool

from accounts_api.core.logging import get_logger
from accounts_api.core.security import hash_password
from accounts_api.domain.users import (
    is_valid_name,
    is_valid_password,
    is_valid_phone,
    mask_phone,
    public_view,
    trim_payload,
)
from accounts_api.repositories.file_store import (
    FileStore,
    RecordExistsError,
    RecordNotFoundError,
    StoreError,
    get_store,
)

logger = get_logger(__name__)

USERS = "users"
SUPPORTED_METHODS = ("POST", "GET", "PUT", "DELETE")


class UserError(Exception):
    """Base class for user resource failures."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidUserInputError(UserError):
    status_code = 400


class UserExistsError(UserError):
    status_code = 400


class UserNotFoundError(UserError):
    status_code = 404


class MethodNotAllowedError(UserError):
    status_code = 405


class UserStorageError(UserError):
    pass


@dataclass
class UserResponse:
    status_code: int
    body: dict


@dataclass
class UserService:
    """Create, read, update and delete users keyed by phone number."""

    store: Optional[FileStore] = field(default=None)

    def __post_init__(self):
        if self.store is None:
            self.store = get_store()

    async def handle(
        self,
        method: str,
        query: Mapping[str, Any] | None = None,
        payload: Mapping[str, Any] | None = None,
    ) -> UserResponse:
        verb = (method or "").upper()
        if verb not in SUPPORTED_METHODS:
            raise MethodNotAllowedError(f"HTTP method {verb or method!r} is not supported for /users")
        query = dict(query or {})
        payload = trim_payload(payload)
        if verb == "POST":
            return await self.create(payload)
        if verb == "GET":
            return await self.get(query.get("phone"))
        if verb == "PUT":
            return await self.update(payload)
        return await self.delete(query.get("phone"))

    # -------------------------------------- helpers --------------------------------------
    def _require_phone(self, phone: Any) -> str:
        if not is_valid_phone(phone):
            raise InvalidUserInputError(f"The phone number {phone!r} is not valid")
        return phone

    async def _load(self, phone: str) -> dict:
        try:
            raw = await self.store.read(USERS, phone)
        except RecordNotFoundError as exc:
            raise UserNotFoundError(f"Could not find user with phone number {phone}") from exc
        except StoreError as exc:
            raise UserStorageError(f"Failed to read user with phone number {phone}") from exc
        try:
            record = json.loads(raw)
        except ValueError as exc:
            logger.error("Stored user %s is not valid JSON", mask_phone(phone))
            raise UserStorageError(f"Failed to read user with phone number {phone}") from exc
        if not isinstance(record, dict):
            raise UserStorageError(f"Failed to read user with phone number {phone}")
        return record

    async def _exists(self, phone: str) -> bool:
        try:
            await self.store.read(USERS, phone)
        except RecordNotFoundError:
            return False
        return True

    # -------------------------------------- operations --------------------------------------
    async def create(self, payload: Mapping[str, Any]) -> UserResponse:
        first_name = payload.get("firstName")
        last_name = payload.get("lastName")
        phone = payload.get("phone")
        password = payload.get("password")
        tos_agreement = payload.get("tosAgreement")
        checks = [
            is_valid_name(first_name),
            is_valid_name(last_name),
            is_valid_phone(phone),
            is_valid_password(password),
            tos_agreement is True,
        ]
        if not all(checks):
            raise InvalidUserInputError("Missing or invalid required fields")

        if await self._exists(phone):
            raise UserExistsError(f"User with phone number {phone} already exists")

        new_user = {
            "firstName": first_name,
            "lastName": last_name,
            "phone": phone,
            "tosAgreement": tos_agreement,
        }
        hashed = await run_in_threadpool(hash_password, password)
        try:
            await self.store.create(USERS, phone, {**new_user, "hashedPassword": hashed})
        except RecordExistsError as exc:
            raise UserExistsError(f"User with phone number {phone} already exists") from exc
        except StoreError as exc:
            raise UserStorageError(f"Failed to create user {first_name} {last_name}") from exc
        logger.info("Created user %s", mask_phone(phone))
        return UserResponse(200, new_user)

    async def get(self, phone: Any) -> UserResponse:
        phone = self._require_phone(phone)
        record = await self._load(phone)
        return UserResponse(200, public_view(record))

    async def update(self, payload: Mapping[str, Any]) -> UserResponse:
        phone = self._require_phone(payload.get("phone"))
        record = await self._load(phone)

        first_name = payload.get("firstName")
        last_name = payload.get("lastName")
        password = payload.get("password")
        if first_name is not None and not is_valid_name(first_name):
            raise InvalidUserInputError("Invalid firstName")
        if last_name is not None and not is_valid_name(last_name):
            raise InvalidUserInputError("Invalid lastName")
        if password is not None and not is_valid_password(password):
            raise InvalidUserInputError("Invalid password")

        if first_name is not None:
            record["firstName"] = first_name
        if last_name is not None:
            record["lastName"] = last_name
        if password is not None:
            record["hashedPassword"] = await run_in_threadpool(hash_password, password)

        try:
            await self.store.update(USERS, phone, record)
        except RecordNotFoundError as exc:
            raise UserNotFoundError(f"Could not find user with phone number {phone}") from exc
        except StoreError as exc:
            raise UserStorageError(f"Failed to update user with phone number {phone}") from exc
        logger.info("Updated user %s", mask_phone(phone))
        return UserResponse(200, public_view(record))

    async def delete(self, phone: Any) -> UserResponse:
        phone = self._require_phone(phone)
        if not await self._exists(phone):
            raise UserNotFoundError(f"Could not find user with phone number {phone}")
        try:
            await self.store.delete(USERS, phone)
        except RecordNotFoundError as exc:
            raise UserNotFoundError(f"Could not find user with phone number {phone}") from exc
        except StoreError as exc:
            raise UserStorageError(f"Failed to delete user with phone number {phone}") from exc
        logger.info("Deleted user %s", mask_phone(phone))
        return UserResponse(200, {"message": f"Successfully deleted user with phone number {phone}."})
