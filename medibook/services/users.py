"""
User Service - registration, login and profile management.
"""

import json
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from email_validator import EmailNotValidError, validate_email
from loguru import logger
from pydantic import ValidationError as ModelValidationError

from medibook.errors import (
    DuplicateDocument,
    InvalidCredentials,
    NotFound,
    Unauthorized,
    ValidationError,
)
from medibook.models.user import Address, User
from medibook.services.images import ImageStore
from medibook.services.security import TokenService, hash_password, verify_password
from medibook.storage.base import USERS, DocumentStore

# bcrypt only hashes the first 72 bytes of a password
MAX_PASSWORD_BYTES = 72


class UserService:
    """Patient accounts on top of the document store."""

    def __init__(
        self,
        store: DocumentStore,
        tokens: TokenService,
        images: ImageStore,
        min_password_length: int = 8,
    ):
        self._store = store
        self._tokens = tokens
        self._images = images
        self._min_password_length = min_password_length

    async def register(self, name: str, email: str, password: str) -> str:
        """
        Create an account and return an access token for it.

        Raises:
            ValidationError: Missing fields, a malformed email, a short
                password or an email that is already registered
        """
        if not name or not email or not password:
            raise ValidationError("Missing Details")

        try:
            validate_email(email, check_deliverability=False)
        except EmailNotValidError as e:
            raise ValidationError("Please enter a valid email") from e

        if len(password) < self._min_password_length:
            raise ValidationError("Please enter a strong password")
        if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValidationError("Password is too long")

        if await self._store.find(USERS, {"email": email}):
            raise ValidationError("User already exists")

        try:
            user = User(name=name, email=email, password=hash_password(password))
        except ModelValidationError as e:
            raise ValidationError("Invalid user details") from e
        try:
            await self._store.insert(USERS, user.model_dump(), unique=("email",))
        except DuplicateDocument as e:
            raise ValidationError("User already exists") from e

        logger.info(f"Registered user {user.id}")
        return self._tokens.create_token(user.id)

    async def login(self, email: str, password: str) -> str:
        """Check credentials and return an access token."""
        matches = await self._store.find(USERS, {"email": email})
        if not matches:
            raise NotFound("User does not exist")

        user = User.model_validate(matches[0])
        if not verify_password(password or "", user.password):
            logger.warning(f"Failed login for user {user.id}")
            raise InvalidCredentials()

        return self._tokens.create_token(user.id)

    def authenticate(self, token: Optional[str]) -> str:
        """Resolve a bearer token to a user id."""
        if not token:
            raise Unauthorized("Not Authorized Login Again")
        return self._tokens.decode_token(token)

    async def get_profile(self, user_id: str) -> Dict[str, Any]:
        user = User.model_validate(await self._store.get(USERS, user_id))
        return user.public()

    async def update_profile(
        self,
        user_id: str,
        name: Optional[str],
        phone: Optional[str],
        address: Union[str, Mapping[str, Any], None],
        dob: Optional[str],
        gender: Optional[str],
        image: Optional[Tuple[bytes, str]] = None,
    ) -> Dict[str, Any]:
        """
        Update a user's profile.

        Args:
            user_id: The authenticated user
            name, phone, dob, gender: Required profile fields
            address: Address as a mapping or its JSON encoding
            image: Optional ``(bytes, filename)`` of a new profile picture

        Returns:
            The updated public profile
        """
        if not name or not phone or not dob or not gender:
            raise ValidationError("Data Missing")

        patch: Dict[str, Any] = {
            "name": name,
            "phone": phone,
            "dob": dob,
            "gender": gender,
            "address": _parse_address(address).model_dump(),
        }
        # Validate the merged profile before anything is written
        current = await self._store.get(USERS, user_id)
        try:
            User.model_validate({**current, **patch})
        except ModelValidationError as e:
            raise ValidationError("Invalid profile data") from e

        if image is not None:
            data, filename = image
            patch["image"] = await self._images.save(data, filename)

        updated = await self._store.update(USERS, user_id, patch)
        logger.info(f"Updated profile of user {user_id}")
        return User.model_validate(updated).public()


def _parse_address(address: Union[str, Mapping[str, Any], None]) -> Address:
    if address is None or address == "":
        return Address()
    if isinstance(address, str):
        try:
            address = json.loads(address)
        except json.JSONDecodeError as e:
            raise ValidationError("Invalid address") from e
    if not isinstance(address, Mapping):
        raise ValidationError("Invalid address")
    return Address(
        line1=str(address.get("line1", "")),
        line2=str(address.get("line2", "")),
    )
