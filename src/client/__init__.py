from .controller import FILTER_FIELDS, AdvocateSearchController, SearchState
from .debounce import DebouncedValue, Debouncer

__all__ = [
    "AdvocateSearchController",
    "SearchState",
    "FILTER_FIELDS",
    "Debouncer",
    "DebouncedValue",
]
