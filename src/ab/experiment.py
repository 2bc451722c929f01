"""Brand experiment definitions.

The site runs one experiment: the bookstore's name. Each arm carries
the copy shown to visitors in that arm and its traffic weight.
"""

from dataclasses import dataclass
from enum import Enum


class Variant(str, Enum):
    POETIC = "poetic"
    MODERN = "modern"


@dataclass(frozen=True)
class BrandArm:
    variant: Variant
    display_name: str
    tagline: str
    weight: float  # Traffic proportion (0.0 to 1.0)


@dataclass(frozen=True)
class Experiment:
    experiment_id: str
    name: str
    arms: tuple[BrandArm, ...]

    def __post_init__(self):
        total = sum(a.weight for a in self.arms)
        if abs(total - 1.0) > 0.001:
            raise ValueError(f"Arm weights must sum to 1.0, got {total}")
        if len(self.arms) < 2:
            raise ValueError("Experiment must have at least 2 arms")
        variants = [a.variant for a in self.arms]
        if len(variants) != len(set(variants)):
            raise ValueError("Arm variants must be unique")

    def arm(self, variant: Variant) -> BrandArm:
        for a in self.arms:
            if a.variant == variant:
                return a
        raise KeyError(variant)


BRAND_EXPERIMENT = Experiment(
    experiment_id="brand_name_v1",
    name="Bookstore Brand Name",
    arms=(
        BrandArm(
            variant=Variant.POETIC,
            display_name="Chapter & Verse",
            tagline="Discover Your Next Great Read",
            weight=0.5,
        ),
        BrandArm(
            variant=Variant.MODERN,
            display_name="Verso",
            tagline="Books Reimagined",
            weight=0.5,
        ),
    ),
)


def display_name(variant: Variant) -> str:
    return BRAND_EXPERIMENT.arm(Variant(variant)).display_name


def tagline(variant: Variant) -> str:
    return BRAND_EXPERIMENT.arm(Variant(variant)).tagline
