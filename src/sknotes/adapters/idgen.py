import base64
import uuid

from ..core.ports import IdGenerator


def uuid_to_base32(value: uuid.UUID) -> str:
    """Lowercase, unpadded base32 form of a UUID (26 characters)."""
    return base64.b32encode(value.bytes).decode("ascii").rstrip("=").lower()


class Base32Id(IdGenerator):
    """File-name friendly note names derived from random UUIDs."""

    def new_id(self) -> str:
        return uuid_to_base32(uuid.uuid4())
