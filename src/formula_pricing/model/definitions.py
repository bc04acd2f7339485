"""Condition, Calculation and Pricing strategy definitions."""

from __future__ import annotations

from typing import Annotated

from pydantic import AfterValidator, BaseModel

ALWAYS = "always"


def _check_tokens(tokens: list[str]) -> list[str]:
    if not tokens:
        raise ValueError("tokens must not be empty")
    for i, token in enumerate(tokens):
        if not token.strip():
            raise ValueError(f"token {i} is blank")
    return tokens


TokenList = Annotated[list[str], AfterValidator(_check_tokens)]


class Condition(BaseModel):
    """A named boolean formula gating whether a Calculation applies."""

    name: str
    display_name: str = ""
    description: str = ""
    tokens: TokenList


class Calculation(BaseModel):
    """A named numeric formula."""

    name: str
    display_name: str = ""
    description: str = ""
    tokens: TokenList


class PricingRule(BaseModel):
    condition_name: str
    calculation_name: str


class Pricing(BaseModel):
    """An ordered list of rules.

    Every rule whose condition holds contributes its calculation's value;
    rule order fixes the running-total accumulation order.
    """

    name: str
    description: str = ""
    rules: list[PricingRule] = []
