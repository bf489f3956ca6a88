"""
Canonical municipality dataset stores.

- AuthorityDataset: lookup contract used by the resolver
- InMemoryAuthorityDataset: list/JSON backed
- SqlAuthorityDataset: municipality_master_data backed
"""

from gemeinde_info.services.dataset.base import AuthorityDataset
from gemeinde_info.services.dataset.matching import (
    contains_as_words,
    name_similarity,
    normalize_name,
    slugify,
)
from gemeinde_info.services.dataset.memory import InMemoryAuthorityDataset
from gemeinde_info.services.dataset.sql import SqlAuthorityDataset

__all__ = [
    "AuthorityDataset",
    "InMemoryAuthorityDataset",
    "SqlAuthorityDataset",
    "normalize_name",
    "contains_as_words",
    "name_similarity",
    "slugify",
]
