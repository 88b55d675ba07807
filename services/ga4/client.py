import logging
from dataclasses import dataclass, field
from typing import Optional

from google.oauth2 import service_account
from google.analytics.data_v1beta import BetaAnalyticsDataClient
from google.analytics.data_v1beta.types import (
    DateRange, Dimension, Filter, FilterExpression, FilterExpressionList, Metric, OrderBy,
    RunRealtimeReportRequest, RunReportRequest,
)

import config
from services.ga4.filters import AndGroup, StringPredicate
from services.ga4.processor import process_response

logger = logging.getLogger(__name__)

SCOPES = ['https://www.googleapis.com/auth/analytics.readonly']


@dataclass
class SortKey:
    """Sort key for a report: exactly one of metric / dimension is set."""
    metric: Optional[str] = None
    dimension: Optional[str] = None
    desc: bool = False


def by_metric(name, desc=True):
    return SortKey(metric=name, desc=desc)


def by_dimension(name, desc=False):
    return SortKey(dimension=name, desc=desc)


@dataclass
class ReportQuery:
    dimensions: list = field(default_factory=list)
    metrics: list = field(default_factory=list)
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    dimension_filter: object = None
    order_bys: list = field(default_factory=list)
    limit: Optional[int] = None


class AnalyticsClient:
    """What the report builders need from GA4.

    Both methods take a ReportQuery and return a list of dict rows keyed by
    dimension / metric name with the raw string values GA4 sends back.
    """

    def run_report(self, query):
        raise NotImplementedError

    def run_realtime_report(self, query):
        raise NotImplementedError


def to_filter_expression(node):
    if node is None:
        return None
    if isinstance(node, AndGroup):
        return FilterExpression(
            and_group=FilterExpressionList(expressions=[to_filter_expression(e) for e in node.expressions])
        )
    if isinstance(node, StringPredicate):
        return FilterExpression(
            filter=Filter(
                field_name=node.field,
                string_filter=Filter.StringFilter(
                    value=node.value,
                    match_type=Filter.StringFilter.MatchType[node.match_mode.ga_match_type],
                ),
            )
        )
    raise TypeError(f'unsupported filter node: {node!r}')


def _to_order_by(order):
    if order.metric:
        return OrderBy(metric=OrderBy.MetricOrderBy(metric_name=order.metric), desc=order.desc)
    return OrderBy(dimension=OrderBy.DimensionOrderBy(dimension_name=order.dimension), desc=order.desc)


def build_run_report_request(property_id, query):
    req = RunReportRequest(
        property=f"properties/{property_id}",
        dimensions=[Dimension(name=d) for d in query.dimensions],
        metrics=[Metric(name=m) for m in query.metrics],
        date_ranges=[DateRange(start_date=query.start_date, end_date=query.end_date)],
        order_bys=[_to_order_by(o) for o in query.order_bys],
    )
    expr = to_filter_expression(query.dimension_filter)
    if expr is not None:
        req.dimension_filter = expr
    if query.limit:
        req.limit = query.limit
    return req


def build_realtime_request(property_id, query):
    # realtime reports have no date range
    req = RunRealtimeReportRequest(
        property=f"properties/{property_id}",
        dimensions=[Dimension(name=d) for d in query.dimensions],
        metrics=[Metric(name=m) for m in query.metrics],
        order_bys=[_to_order_by(o) for o in query.order_bys],
    )
    expr = to_filter_expression(query.dimension_filter)
    if expr is not None:
        req.dimension_filter = expr
    if query.limit:
        req.limit = query.limit
    return req


class GA4Client(AnalyticsClient):
    def __init__(self, data_client, property_id):
        self.data_client = data_client
        self.property_id = property_id

    @classmethod
    def from_credentials(cls, client_email, private_key, property_id):
        if not client_email or not private_key:
            raise RuntimeError('GA_CLIENT_EMAIL and GA_PRIVATE_KEY must be set')
        creds = service_account.Credentials.from_service_account_info(
            {
                'type': 'service_account',
                'client_email': client_email,
                'private_key': private_key,
                'token_uri': 'https://oauth2.googleapis.com/token',
            },
            scopes=SCOPES,
        )
        return cls(BetaAnalyticsDataClient(credentials=creds), property_id)

    def run_report(self, query):
        req = build_run_report_request(self.property_id, query)
        logger.debug("runReport %s", req)
        return process_response(self.data_client.run_report(req))

    def run_realtime_report(self, query):
        req = build_realtime_request(self.property_id, query)
        logger.debug("runRealtimeReport %s", req)
        return process_response(self.data_client.run_realtime_report(req))


_client = None


def get_ga4_client():
    """Process-wide GA4 client, built from the environment on first use."""
    global _client
    if _client is None:
        _client = GA4Client.from_credentials(config.GA_CLIENT_EMAIL, config.GA_PRIVATE_KEY, config.GA4_PROPERTY_ID)
        logger.info("GA4 client initialised for property %s", config.GA4_PROPERTY_ID)
    return _client
