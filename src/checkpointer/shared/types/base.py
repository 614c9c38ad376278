"""
Base model for Checkpointer API payloads.

The API speaks camelCase JSON; Python code uses snake_case attributes.
Every payload model inherits from BaseTypeModel, which maps between the
two and ignores fields the server adds later so that new columns never
break validation.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class BaseTypeModel(BaseModel):
    """Lenient base model for external API boundaries.

    Configuration:
        - extra="ignore": Silently ignore unknown fields
        - alias_generator=to_camel: ``cover_url`` reads ``coverUrl``
        - populate_by_name=True: Accept both field names and aliases

    Example:
        >>> class Item(BaseTypeModel):
        ...     cover_url: str | None = None
        >>> Item.model_validate({"coverUrl": "x.png", "extra": 1}).cover_url
        'x.png'
    """

    model_config = ConfigDict(
        extra="ignore",
        alias_generator=to_camel,
        populate_by_name=True,
    )
