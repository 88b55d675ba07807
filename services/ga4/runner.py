import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import config
from services.ga4 import reports
from services.ga4.client import get_ga4_client
from services.ga4.filters import MatchMode

logger = logging.getLogger(__name__)


class ReportType(Enum):
    OVERVIEW = 'overview'
    OVERVIEW_BY_URL = 'overview-by-url'
    DAILY_TREND = 'daily-trend'
    REGIONS = 'regions'
    DEVICES = 'devices'
    COMPANIES = 'companies'
    PAGES = 'pages'
    REALTIME = 'realtime'
    COMPANY_DETAIL = 'company-detail'
    COMPANIES_BY_URL = 'companies-by-url'
    SUBPAGES = 'subpages'

    @classmethod
    def parse(cls, value):
        """Unknown or missing report types are served as the overview report."""
        for t in cls:
            if t.value == value:
                return t
        return cls.OVERVIEW


@dataclass
class ReportRequest:
    report_type: ReportType = ReportType.OVERVIEW
    start_date: str = config.DEFAULT_START_DATE
    end_date: str = config.DEFAULT_END_DATE
    company: Optional[str] = None
    url: Optional[str] = None
    url_match_mode: MatchMode = MatchMode.CONTAINS
    prefecture: Optional[str] = None
    industry: Optional[str] = None
    employees: Optional[str] = None


def parse_params(params):
    """Build a ReportRequest from a query-string mapping; empty values count as absent."""
    params = params or {}

    def get(name):
        return params.get(name) or None

    return ReportRequest(
        report_type=ReportType.parse(get('type') or config.DEFAULT_REPORT_TYPE),
        start_date=get('startDate') or config.DEFAULT_START_DATE,
        end_date=get('endDate') or config.DEFAULT_END_DATE,
        company=get('company'),
        url=get('url'),
        url_match_mode=MatchMode.parse(get('urlMatchType') or config.DEFAULT_URL_MATCH_TYPE),
        prefecture=get('prefecture'),
        industry=get('industry'),
        employees=get('employees'),
    )


def run_report(req, client):
    """Invoke the one builder for req.report_type and return its result."""
    t = req.report_type
    s, e = req.start_date, req.end_date

    if t is ReportType.OVERVIEW_BY_URL:
        return reports.overview_by_url(client, s, e, req.url, req.url_match_mode)
    if t is ReportType.DAILY_TREND:
        return reports.daily_trend(client, s, e, req.url, req.url_match_mode)
    if t is ReportType.REGIONS:
        return reports.regions(client, s, e, req.url, req.url_match_mode)
    if t is ReportType.DEVICES:
        return reports.devices(client, s, e, req.url, req.url_match_mode)
    if t is ReportType.COMPANIES:
        return reports.companies(
            client, s, e,
            url=req.url, url_match_mode=req.url_match_mode,
            prefecture=req.prefecture, industry=req.industry, employees=req.employees,
        )
    if t is ReportType.PAGES:
        return reports.pages(client, s, e, req.company)
    if t is ReportType.REALTIME:
        return reports.realtime(client)
    if t is ReportType.COMPANY_DETAIL:
        return reports.company_detail(client, s, e, req.company)
    if t is ReportType.COMPANIES_BY_URL:
        return reports.companies_by_url(client, s, e, req.url)
    if t is ReportType.SUBPAGES:
        return reports.subpages(client, s, e, req.url)
    return reports.overview(client, s, e)


def handle_request(method, params, client=None):
    """Shared HTTP boundary for the Flask app and the serverless handler.

    Returns (status, headers, body); body is None for the CORS preflight.
    """
    headers = dict(config.CORS_HEADERS)
    if (method or 'GET').upper() == 'OPTIONS':
        return 200, headers, None

    try:
        req = parse_params(params)
        logger.info("report=%s range=%s..%s", req.report_type.value, req.start_date, req.end_date)
        result = run_report(req, client or get_ga4_client())
    except Exception as e:
        logger.exception(f"GA4 API Error: {e}")
        return 500, headers, {'error': str(e)}
    return 200, headers, result
