from .advocates import DEGREES, SPECIALTIES, clamp_seed_count, generate_advocate_data

__all__ = [
    "DEGREES",
    "SPECIALTIES",
    "clamp_seed_count",
    "generate_advocate_data",
]
