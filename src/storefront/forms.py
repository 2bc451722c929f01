"""Validated storefront form payloads and the pricing tiers."""

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class _Form(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)


class PreOrder(_Form):
    name: str = Field(min_length=1, max_length=100)
    email: EmailStr  # email-validator rejects addresses over 254 chars
    book_title: str = Field(min_length=1, max_length=200)


class ContactMessage(_Form):
    name: str = Field(min_length=1, max_length=100)
    email: EmailStr  # email-validator rejects addresses over 254 chars
    message: str = Field(min_length=1, max_length=2000)


@dataclass(frozen=True)
class PricingTier:
    name: str
    price: float  # USD per month
    description: str
    features: tuple[str, ...]
    highlighted: bool = False


PRICING_TIERS = (
    PricingTier(
        name="Monthly PDF Digest",
        price=5,
        description="Perfect for light readers",
        features=(
            "Monthly curated book summaries",
            "PDF format for easy reading",
            "Key insights and takeaways",
            "Email delivery",
        ),
    ),
    PricingTier(
        name="Curated Book Box",
        price=19,
        description="For dedicated book lovers",
        features=(
            "1 carefully selected book per month",
            "Exclusive reading notes",
            "Author insights & context",
            "Free shipping",
            "Digital companion guide",
        ),
        highlighted=True,
    ),
    PricingTier(
        name="Premium Coaching Bundle",
        price=49,
        description="Ultimate reading experience",
        features=(
            "Monthly book bundle (2-3 books)",
            "Personal coaching session",
            "Exclusive community access",
            "Priority support",
            "Custom reading roadmap",
            "All lower tier benefits",
        ),
    ),
)


def find_tier(name: str) -> PricingTier:
    for tier in PRICING_TIERS:
        if tier.name == name:
            return tier
    raise ValueError(f"Unknown pricing tier: {name}")
