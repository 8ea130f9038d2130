# mdm_management/schemas.py

import json
from typing import Annotated

from pydantic import BaseModel, ConfigDict, StringConstraints, ValidationError, field_validator

from mdm_management.errors import InvalidInput

# Width of the payload_identifier column.
MAX_IDENTIFIER_LENGTH = 255


class CreateProfileRequest(BaseModel):
    """Body of ``POST /profiles``."""
    model_config = ConfigDict(extra="forbid")

    payload_identifier: Annotated[str, StringConstraints(min_length=1, max_length=MAX_IDENTIFIER_LENGTH)]
    data: str

    @field_validator("payload_identifier")
    @classmethod
    def not_blank(cls, value):
        # kept verbatim: the identifier is a business key
        if not value.strip():
            raise ValueError("payload_identifier must not be blank")
        return value

    @field_validator("payload_identifier", "data")
    @classmethod
    def encodable(cls, value):
        try:
            value.encode("utf-8")
        except UnicodeEncodeError:
            raise ValueError("must be valid unicode text")
        return value


def parse_create_profile(raw):
    """Validate a raw request body and return a CreateProfileRequest.

    Accepts bytes, str or an already-decoded dict. Anything that is empty,
    not a JSON object, or does not match the schema raises InvalidInput.
    """
    if raw is None or (isinstance(raw, (bytes, str)) and not raw.strip()):
        raise InvalidInput("request body is empty")

    if isinstance(raw, (bytes, str)):
        try:
            raw = json.loads(raw)
        except (ValueError, UnicodeDecodeError) as e:
            raise InvalidInput(f"request body is not valid JSON: {e}")

    if not isinstance(raw, dict):
        raise InvalidInput("request body must be a JSON object")

    try:
        return CreateProfileRequest.model_validate(raw)
    except ValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) or "body" for err in e.errors())
        raise InvalidInput(f"invalid profile: {fields}")
