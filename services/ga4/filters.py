"""Dimension filter trees for GA4 report queries.

Filters are kept as plain dataclasses here so the report builders never touch
the GA4 protobuf types; ``services.ga4.client`` converts them on the way out.
"""
from dataclasses import dataclass, field
from enum import Enum

import config


class MatchMode(Enum):
    EXACT = 'exact'
    PREFIX = 'prefix'
    CONTAINS = 'contains'

    @property
    def ga_match_type(self):
        return {'exact': 'EXACT', 'prefix': 'BEGINS_WITH', 'contains': 'CONTAINS'}[self.value]

    @classmethod
    def parse(cls, value):
        """Map a query-string match mode to a MatchMode.

        Missing or unrecognised values fall back to CONTAINS, which is what the
        dashboard has always sent when the user picks nothing.
        """
        for mode in cls:
            if mode.value == value:
                return mode
        return cls.CONTAINS


@dataclass
class StringPredicate:
    field: str
    value: str
    match_mode: MatchMode = MatchMode.EXACT


@dataclass
class AndGroup:
    expressions: list = field(default_factory=list)


def combine(predicates):
    """None for no predicates, the leaf itself for one, an AndGroup otherwise."""
    predicates = list(predicates)
    if not predicates:
        return None
    if len(predicates) == 1:
        return predicates[0]
    return AndGroup(expressions=predicates)


def custom_dimension(name, scope=None):
    return f"{scope or config.CUSTOM_DIMENSION_SCOPE}:{name}"


def url_filter(url, match_mode=MatchMode.CONTAINS):
    if not url:
        return None
    return StringPredicate('pagePath', url, match_mode)


def build_company_filter(url=None, url_match_mode=MatchMode.CONTAINS, prefecture=None,
                         industry=None, employees=None, scope=None):
    predicates = []
    if url:
        predicates.append(url_filter(url, url_match_mode))
    if prefecture:
        predicates.append(StringPredicate(custom_dimension('pref', scope), prefecture, MatchMode.EXACT))
    if industry:
        predicates.append(StringPredicate(custom_dimension('industrialCategoryL', scope), industry, MatchMode.CONTAINS))
    if employees:
        predicates.append(StringPredicate(custom_dimension('employees', scope), employees, MatchMode.EXACT))
    return combine(predicates)
