# src/seed/advocates.py
"""
Synthetic advocate rows for local/dev databases.

Rows use the public camelCase keys accepted by src.db.insert_advocates().
"""

from __future__ import annotations

import math
import random
from typing import Any

SPECIALTIES = [
    "Bipolar",
    "LGBTQ",
    "Medication/Prescribing",
    "Suicide History/Attempts",
    "General Mental Health (anxiety, depression, stress, grief, life transitions)",
    "Men's issues",
    "Relationship Issues (family, friends, couple, etc)",
    "Trauma & PTSD",
    "Personality disorders",
    "Personal growth",
    "Substance use/abuse",
    "Pediatrics",
    "Women's issues (post-partum, infertility, family planning)",
    "Chronic pain",
    "Weight loss & nutrition",
    "Eating disorders",
    "Diabetic Diet and nutrition",
    "Coaching (leadership, career, academic and wellness)",
    "Life coaching",
    "Obsessive-compulsive disorders",
    "Neuropsychological evaluations & testing (ADHD testing)",
    "Attention and Hyperactivity (ADHD)",
    "Sleep issues",
    "Schizophrenia and psychotic disorders",
    "Learning disorders",
    "Domestic abuse",
]

DEGREES = ["MD", "PhD", "MSW", "PsyD", "NP"]

FIRST_NAMES = [
    "John", "Jane", "Alice", "Michael", "Emily", "Chris", "Jessica", "David",
    "Laura", "Daniel", "Sarah", "James", "Megan", "Joshua", "Amanda", "Renée",
    "José", "Priya", "Wei", "Fatima", "Olivia", "Noah", "Sofia", "Mateo",
]

LAST_NAMES = [
    "Doe", "Smith", "Johnson", "Brown", "Davis", "Martinez", "Taylor", "Harris",
    "Clark", "Lewis", "Lee", "King", "Green", "Walker", "Hall", "Núñez",
    "O'Brien", "Nguyen", "Patel", "Kim", "García", "Müller", "Cohen", "Okafor",
]

CITIES = [
    "New York", "Los Angeles", "Chicago", "Houston", "Phoenix", "Philadelphia",
    "San Antonio", "San Diego", "Dallas", "San Jose", "Austin", "Jacksonville",
    "San Francisco", "Columbus", "Fort Worth", "Indianapolis", "Charlotte",
    "Seattle", "Denver", "Washington", "Boston", "Nashville", "Portland",
]

MIN_SPECIALTIES = 2
MAX_SPECIALTIES = 5
MAX_YEARS = 40
# 10-digit numbers that do not start too low.
PHONE_MIN = 2_000_000_000
PHONE_MAX = 9_999_999_999


def clamp_seed_count(raw: Any, default: int = 1000, max_count: int = 10000) -> int:
    """
    Parse a requested seed size, clamped to [1, max_count].

    Non-numeric input falls back to default; fractional input is floored.
    """
    try:
        num = float(raw) if raw is not None and str(raw).strip() else float(default)
    except (TypeError, ValueError):
        num = float(default)
    value = math.floor(num) if math.isfinite(num) else default
    return max(1, min(max_count, int(value)))


def _random_specialties(rng: random.Random) -> list[str]:
    count = rng.randint(MIN_SPECIALTIES, MAX_SPECIALTIES)
    return rng.sample(SPECIALTIES, count)


def generate_advocate_data(count: int, *, rng: random.Random | None = None) -> list[dict[str, Any]]:
    """Generate `count` realistic-looking advocate rows."""
    rng = rng or random.Random()
    rows: list[dict[str, Any]] = []
    for _ in range(max(0, int(count))):
        rows.append(
            {
                "firstName": rng.choice(FIRST_NAMES),
                "lastName": rng.choice(LAST_NAMES),
                "city": rng.choice(CITIES),
                "degree": rng.choice(DEGREES),
                "specialties": _random_specialties(rng),
                "yearsOfExperience": rng.randint(0, MAX_YEARS),
                "phoneNumber": rng.randint(PHONE_MIN, PHONE_MAX),
            }
        )
    return rows
