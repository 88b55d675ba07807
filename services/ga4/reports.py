"""Report builders behind the dashboard's ``?type=`` parameter.

Every builder issues one or two queries through an ``AnalyticsClient`` and
returns ``{"type": ..., "data": ...}``. Builders that need an identifying
parameter return ``{"type": ..., "error": ...}`` instead when it is missing;
that is a normal 200 response, not a failure. Upstream errors are not caught
here.
"""
import logging
import math
from decimal import ROUND_HALF_UP, Decimal
from dataclasses import dataclass, field

import config
from services.ga4.client import ReportQuery, by_dimension, by_metric
from services.ga4.filters import MatchMode, StringPredicate, build_company_filter, custom_dimension, url_filter
from services.ga4.processor import to_float, to_int

logger = logging.getLogger(__name__)


def _company_dimensions():
    return [custom_dimension(n) for n in ('name', 'pref', 'industrialCategoryL', 'employees')]


def _company_is(name):
    return StringPredicate(custom_dimension('name'), name, MatchMode.EXACT)


def format_trend_date(value):
    # GA4 returns YYYYMMDD
    if len(value) == 8:
        return f"{value[4:6]}/{value[6:8]}"
    return value


def _round_half_up(x):
    return int(math.floor(x + 0.5))


def _one_decimal(x):
    # ties round up on the exact binary value, like Number.toFixed(1)
    return str(Decimal(x).quantize(Decimal('0.1'), rounding=ROUND_HALF_UP))


def overview(client, start_date, end_date):
    rows = client.run_report(ReportQuery(
        metrics=['activeUsers', 'sessions', 'screenPageViews', 'averageSessionDuration', 'bounceRate'],
        start_date=start_date, end_date=end_date,
    ))
    r = rows[0] if rows else {}
    return {
        'type': 'overview',
        'data': {
            'activeUsers': to_int(r.get('activeUsers')),
            'sessions': to_int(r.get('sessions')),
            'pageViews': to_int(r.get('screenPageViews')),
            'avgSessionDuration': to_float(r.get('averageSessionDuration')),
            'bounceRate': to_float(r.get('bounceRate')),
        },
    }


def overview_by_url(client, start_date, end_date, url=None, match_mode=MatchMode.CONTAINS):
    rows = client.run_report(ReportQuery(
        metrics=['activeUsers', 'sessions', 'screenPageViews', 'averageSessionDuration'],
        start_date=start_date, end_date=end_date,
        dimension_filter=url_filter(url, match_mode),
    ))
    r = rows[0] if rows else {}
    return {
        'type': 'overview-by-url',
        'data': {
            'activeUsers': to_int(r.get('activeUsers')),
            'sessions': to_int(r.get('sessions')),
            'pageViews': to_int(r.get('screenPageViews')),
            'avgSessionDuration': to_float(r.get('averageSessionDuration')),
        },
    }


def daily_trend(client, start_date, end_date, url=None, match_mode=MatchMode.CONTAINS):
    rows = client.run_report(ReportQuery(
        dimensions=['date'],
        metrics=['screenPageViews', 'sessions', 'activeUsers'],
        start_date=start_date, end_date=end_date,
        dimension_filter=url_filter(url, match_mode),
        order_bys=[by_dimension('date')],
    ))
    data = [{
        'date': format_trend_date(r.get('date') or ''),
        'pv': to_int(r.get('screenPageViews')),
        'sessions': to_int(r.get('sessions')),
        'users': to_int(r.get('activeUsers')),
    } for r in rows]
    return {'type': 'daily-trend', 'data': data}


def with_session_share(regions):
    """Attach each region's share of total sessions as a one-decimal string."""
    total = sum(r['sessions'] for r in regions) or 1
    return [dict(r, percent=_one_decimal(r['sessions'] / total * 100)) for r in regions]


def regions(client, start_date, end_date, url=None, match_mode=MatchMode.CONTAINS):
    rows = client.run_report(ReportQuery(
        dimensions=['region'],
        metrics=['sessions', 'activeUsers', 'screenPageViews'],
        start_date=start_date, end_date=end_date,
        dimension_filter=url_filter(url, match_mode),
        order_bys=[by_metric('sessions')],
        limit=config.REGIONS_LIMIT,
    ))
    data = [{
        'name': r.get('region') or config.UNKNOWN_REGION,
        'sessions': to_int(r.get('sessions')),
        'users': to_int(r.get('activeUsers')),
        'pageViews': to_int(r.get('screenPageViews')),
    } for r in rows]
    return {'type': 'regions', 'data': with_session_share(data)}


def device_entry(category, sessions, total):
    key = category.lower()
    return {
        'name': config.DEVICE_LABELS.get(category, category),
        'value': _round_half_up(sessions / (total or 1) * 100),
        'color': config.DEVICE_COLORS.get(key, config.DEFAULT_DEVICE_COLOR),
        'sessions': sessions,
    }


def devices(client, start_date, end_date, url=None, match_mode=MatchMode.CONTAINS):
    rows = client.run_report(ReportQuery(
        dimensions=['deviceCategory'],
        metrics=['sessions', 'activeUsers'],
        start_date=start_date, end_date=end_date,
        dimension_filter=url_filter(url, match_mode),
        order_bys=[by_metric('sessions')],
    ))
    total = sum(to_int(r.get('sessions')) for r in rows)
    data = [device_entry(r.get('deviceCategory') or 'other', to_int(r.get('sessions')), total) for r in rows]
    return {'type': 'devices', 'data': data}


def companies(client, start_date, end_date, url=None, url_match_mode=MatchMode.CONTAINS,
              prefecture=None, industry=None, employees=None):
    name_dim, pref_dim, industry_dim, employees_dim = _company_dimensions()
    rows = client.run_report(ReportQuery(
        dimensions=[name_dim, pref_dim, industry_dim, employees_dim],
        metrics=['activeUsers', 'sessions', 'screenPageViews', 'averageSessionDuration'],
        start_date=start_date, end_date=end_date,
        dimension_filter=build_company_filter(url, url_match_mode, prefecture, industry, employees),
        order_bys=[by_metric('sessions')],
        limit=config.COMPANIES_LIMIT,
    ))
    data = [{
        'name': r.get(name_dim) or config.UNKNOWN_COMPANY,
        'prefecture': r.get(pref_dim) or '',
        'industry': r.get(industry_dim) or '',
        'employees': r.get(employees_dim) or '',
        'activeUsers': to_int(r.get('activeUsers')),
        'sessions': to_int(r.get('sessions')),
        'pageViews': to_int(r.get('screenPageViews')),
        'avgDuration': to_float(r.get('averageSessionDuration')),
    } for r in rows]
    return {
        'type': 'companies',
        'data': data,
        'filters': {
            'urlFilter': url,
            'prefectureFilter': prefecture,
            'industryFilter': industry,
            'employeesFilter': employees,
        },
    }


def pages(client, start_date, end_date, company=None):
    rows = client.run_report(ReportQuery(
        dimensions=['pagePath', 'pageTitle'],
        metrics=['screenPageViews', 'activeUsers', 'averageSessionDuration'],
        start_date=start_date, end_date=end_date,
        dimension_filter=_company_is(company) if company else None,
        order_bys=[by_metric('screenPageViews')],
        limit=config.PAGES_LIMIT,
    ))
    data = [{
        'path': r.get('pagePath') or '',
        'title': r.get('pageTitle') or '',
        'pageViews': to_int(r.get('screenPageViews')),
        'users': to_int(r.get('activeUsers')),
        'avgDuration': to_float(r.get('averageSessionDuration')),
    } for r in rows]
    return {'type': 'pages', 'data': data}


def realtime(client, mode=None):
    """Active users right now.

    The deployed handlers disagree here: one only reports the total (the
    realtime API rejects the company custom dimension on some properties),
    the other ranks the top companies. REALTIME_MODE picks one.
    """
    mode = mode or config.REALTIME_MODE
    if mode == 'companies':
        name_dim = custom_dimension('name')
        rows = client.run_realtime_report(ReportQuery(
            dimensions=[name_dim],
            metrics=['activeUsers'],
            order_bys=[by_metric('activeUsers')],
            limit=config.REALTIME_TOP_COMPANIES,
        ))
        ranked = sorted(
            ({'name': r.get(name_dim) or config.UNKNOWN_COMPANY, 'activeUsers': to_int(r.get('activeUsers'))}
             for r in rows),
            key=lambda c: c['activeUsers'], reverse=True,
        )[:config.REALTIME_TOP_COMPANIES]
        return {
            'type': 'realtime',
            'data': {'totalActiveUsers': sum(c['activeUsers'] for c in ranked), 'companies': ranked},
        }

    rows = client.run_realtime_report(ReportQuery(metrics=['activeUsers']))
    total = to_int(rows[0].get('activeUsers')) if rows else 0
    return {'type': 'realtime', 'data': {'totalActiveUsers': total, 'companies': []}}


def company_detail(client, start_date, end_date, company=None):
    if not company:
        return {'type': 'company-detail', 'error': 'Company name required'}

    visit_rows = client.run_report(ReportQuery(
        dimensions=['date'],
        metrics=['sessions', 'screenPageViews'],
        start_date=start_date, end_date=end_date,
        dimension_filter=_company_is(company),
        order_bys=[by_dimension('date', desc=True)],
    ))
    page_rows = client.run_report(ReportQuery(
        dimensions=['pagePath', 'pageTitle'],
        metrics=['screenPageViews'],
        start_date=start_date, end_date=end_date,
        dimension_filter=_company_is(company),
        order_bys=[by_metric('screenPageViews')],
        limit=config.COMPANY_DETAIL_PAGES_LIMIT,
    ))
    visits = [{
        'date': r.get('date') or '',
        'sessions': to_int(r.get('sessions')),
        'pageViews': to_int(r.get('screenPageViews')),
    } for r in visit_rows]
    viewed = [{
        'path': r.get('pagePath') or '',
        'title': r.get('pageTitle') or '',
        'pageViews': to_int(r.get('screenPageViews')),
    } for r in page_rows]
    return {'type': 'company-detail', 'data': {'companyName': company, 'visits': visits, 'pages': viewed}}


@dataclass
class CompanyAggregate:
    name: str
    prefecture: str = ''
    industry: str = ''
    employees: str = ''
    pageViews: int = 0
    sessions: int = 0
    viewedPages: list = field(default_factory=list)

    def add(self, page_path, page_views, sessions):
        self.pageViews += page_views
        self.sessions += sessions
        if page_path not in self.viewedPages:
            self.viewedPages.append(page_path)

    def as_dict(self):
        return {
            'name': self.name,
            'prefecture': self.prefecture,
            'industry': self.industry,
            'employees': self.employees,
            'pageViews': self.pageViews,
            'sessions': self.sessions,
            'viewedPages': list(self.viewedPages),
        }


def aggregate_by_company(rows, name_dim, pref_dim, industry_dim, employees_dim):
    """Fold per-page rows into one record per company, most page views first."""
    by_name = {}
    for r in rows:
        name = r.get(name_dim) or config.UNKNOWN_COMPANY
        agg = by_name.get(name)
        if agg is None:
            agg = by_name[name] = CompanyAggregate(
                name=name,
                prefecture=r.get(pref_dim) or '',
                industry=r.get(industry_dim) or '',
                employees=r.get(employees_dim) or '',
            )
        agg.add(r.get('pagePath') or '', to_int(r.get('screenPageViews')), to_int(r.get('sessions')))
    return sorted(by_name.values(), key=lambda a: a.pageViews, reverse=True)


def companies_by_url(client, start_date, end_date, url=None):
    if not url:
        return {'type': 'companies-by-url', 'error': 'URL path required'}

    dims = _company_dimensions()
    rows = client.run_report(ReportQuery(
        dimensions=dims + ['pagePath'],
        metrics=['screenPageViews', 'sessions'],
        start_date=start_date, end_date=end_date,
        dimension_filter=url_filter(url, MatchMode.CONTAINS),
        order_bys=[by_metric('screenPageViews')],
        limit=config.COMPANIES_BY_URL_LIMIT,
    ))
    aggregated = aggregate_by_company(rows, *dims)
    return {
        'type': 'companies-by-url',
        'data': {'urlPath': url, 'companies': [a.as_dict() for a in aggregated]},
    }


def subpages(client, start_date, end_date, url=None):
    if not url:
        return {'type': 'subpages', 'error': 'Parent path required'}

    rows = client.run_report(ReportQuery(
        dimensions=['pagePath', 'pageTitle'],
        metrics=['screenPageViews', 'sessions', 'activeUsers'],
        start_date=start_date, end_date=end_date,
        dimension_filter=url_filter(url, MatchMode.PREFIX),
        order_bys=[by_metric('screenPageViews')],
        limit=config.SUBPAGES_LIMIT,
    ))
    data = [{
        'path': r.get('pagePath') or '',
        'title': r.get('pageTitle') or '',
        'pageViews': to_int(r.get('screenPageViews')),
        'sessions': to_int(r.get('sessions')),
        'activeUsers': to_int(r.get('activeUsers')),
    } for r in rows]
    return {'type': 'subpages', 'data': {'parentPath': url, 'pages': data}}
