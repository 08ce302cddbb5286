"""Shared Pydantic base for API payloads."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class APIModel(BaseModel):
    """
    Base for request/response bodies.

    Python attributes stay snake_case; the wire format is camelCase
    (rejectionReason, conditionalOfferTerms). Either spelling is accepted on input.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )
