"""Simulation parameters for bookstore landing page visitors.

These numbers model a small bookstore's landing page:
  arrival -> hero call-to-action -> pre-order or contact

Rates are calibrated so both arms collect enough entries and
conversions to compare, while remaining realistic.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class SimulationConfig:
    num_visitors: int = 2000
    # Number of days the simulation spans
    days: int = 14
    # Random seed for reproducibility
    seed: int = 42

    # Per-visit step probabilities
    prob_shop_click: float = 0.45      # "Shop Now" hero button
    prob_visit_click: float = 0.20     # "Visit Store" hero button
    prob_pre_order: float = 0.18       # conditional on any hero click
    prob_contact: float = 0.06         # conditional on any hero click
    modern_uplift: float = 0.05        # +5pp pre-order probability for "Verso"

    # Header navigation
    min_nav_clicks: int = 0
    max_nav_clicks: int = 4
    nav_targets: tuple[str, ...] = (
        "featured",
        "about",
        "contact",
        "pricing",
        "pre-order",
    )

    # Featured books visitors pre-order, weighted toward the front list
    books: tuple[str, ...] = (
        "The Midnight Library",
        "Project Hail Mary",
        "Klara and the Sun",
        "The Lincoln Highway",
        "Cloud Cuckoo Land",
        "Tomorrow, and Tomorrow, and Tomorrow",
    )
    book_weights: tuple[float, ...] = (0.3, 0.25, 0.15, 0.12, 0.1, 0.08)
