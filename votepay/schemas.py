"""
Request bodies accepted by the HTTP layer.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from votepay.errors import ValidationFailed


class RequestModel(BaseModel):
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)


class NewCategoryRequest(RequestModel):
    name: str = Field(min_length=1)


class NewPositionRequest(RequestModel):
    name: str = Field(min_length=1)
    category_id: int = Field(gt=0)


class NewCandidateRequest(RequestModel):
    name: str = Field(min_length=1)
    position_id: int = Field(gt=0)


class VoteRequest(RequestModel):
    voter_name: str = Field(min_length=1)
    voter_phone: str = Field(min_length=1)
    candidate_id: int = Field(gt=0)
    amount: int = Field(gt=0)


class PaymentPushRequest(RequestModel):
    amount: int = Field(gt=0)
    phone: str

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: str) -> str:
        if not v.startswith("254") or len(v) != 12 or not v.isdigit():
            raise ValueError("Phone number must be in format 254XXXXXXXXX")
        return v


class MpesaCallback(RequestModel):
    """Payment result posted by the gateway."""

    model_config = ConfigDict(
        extra="ignore", str_strip_whitespace=True, coerce_numbers_to_str=True
    )

    external_id: str = Field(alias="externalId", min_length=1)
    transaction_status: str = Field(alias="transactionStatus", min_length=1)
    transaction_report: Optional[str] = Field(default=None, alias="transactionReport")
    currency: Optional[str] = None
    amount: Optional[str] = None
    net_amount: Optional[str] = Field(default=None, alias="netAmount")
    secure_id: Optional[str] = Field(default=None, alias="secureId")


class AmountSyncRequest(RequestModel):
    text: str = Field(min_length=1)


def load_request(schema, data):
    if not isinstance(data, dict):
        raise ValidationFailed("Request body must be a JSON object")
    try:
        return schema.model_validate(data)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in err['loc']) or 'body'}: {err['msg']}"
            for err in exc.errors()
        )
        raise ValidationFailed(problems) from exc
