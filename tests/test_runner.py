"""Dispatcher tests."""

from unittest.mock import patch

import pytest

import config
from services.ga4.filters import MatchMode
from services.ga4.runner import ReportRequest, ReportType, handle_request, parse_params, run_report

from conftest import FailingClient, FakeAnalyticsClient

OVERVIEW_ROW = {
    'activeUsers': '10', 'sessions': '12', 'screenPageViews': '30',
    'averageSessionDuration': '61.2', 'bounceRate': '0.5',
}


@pytest.fixture(autouse=True)
def total_realtime(monkeypatch):
    monkeypatch.setattr(config, 'REALTIME_MODE', 'total')


class TestParseParams:

    def test_defaults(self):
        assert parse_params({}) == ReportRequest(
            report_type=ReportType.OVERVIEW, start_date='30daysAgo', end_date='today',
            url_match_mode=MatchMode.CONTAINS,
        )
        assert parse_params(None).report_type is ReportType.OVERVIEW

    def test_all_fields(self):
        req = parse_params({
            'type': 'companies', 'startDate': '2024-01-01', 'endDate': '2024-01-31',
            'company': 'Acme', 'url': '/a', 'urlMatchType': 'prefix',
            'prefecture': '東京都', 'industry': 'IT', 'employees': '10-49',
        })
        assert req.report_type is ReportType.COMPANIES
        assert (req.start_date, req.end_date) == ('2024-01-01', '2024-01-31')
        assert req.url_match_mode is MatchMode.PREFIX
        assert (req.company, req.url, req.prefecture, req.industry, req.employees) == (
            'Acme', '/a', '東京都', 'IT', '10-49',
        )

    def test_empty_strings_are_absent(self):
        req = parse_params({'startDate': '', 'company': '', 'url': ''})
        assert req.start_date == '30daysAgo'
        assert req.company is None
        assert req.url is None

    def test_unknown_type_is_overview(self):
        assert ReportType.parse('funnel') is ReportType.OVERVIEW


class TestRunReport:

    @pytest.mark.parametrize('report_type', [t for t in ReportType])
    def test_each_type_dispatches_to_its_builder(self, report_type):
        client = FakeAnalyticsClient()
        req = ReportRequest(report_type=report_type, company='Acme', url='/x')
        result = run_report(req, client)
        assert result['type'] == report_type.value

    def test_unknown_type_matches_overview(self):
        unknown = run_report(parse_params({'type': 'nope', 'startDate': '7daysAgo'}), FakeAnalyticsClient([OVERVIEW_ROW]))
        overview_client = FakeAnalyticsClient([OVERVIEW_ROW])
        overview = run_report(parse_params({'type': 'overview', 'startDate': '7daysAgo'}), overview_client)
        assert unknown == overview
        assert overview_client.queries[0].start_date == '7daysAgo'

    def test_companies_passes_all_filters(self):
        client = FakeAnalyticsClient()
        run_report(parse_params({'type': 'companies', 'url': '/a', 'prefecture': 'P', 'employees': 'E'}), client)
        assert len(client.queries[0].dimension_filter.expressions) == 3


class TestHandleRequest:

    def test_options_preflight(self):
        status, headers, body = handle_request('OPTIONS', {}, FakeAnalyticsClient())
        assert status == 200
        assert body is None
        assert headers['Access-Control-Allow-Origin'] == '*'
        assert headers['Access-Control-Allow-Methods'] == 'GET, POST, OPTIONS'

    def test_success(self):
        status, headers, body = handle_request('GET', {'type': 'overview'}, FakeAnalyticsClient([OVERVIEW_ROW]))
        assert status == 200
        assert body['data']['sessions'] == 12
        assert headers['Access-Control-Allow-Headers'] == 'Content-Type'

    def test_validation_error_is_200(self):
        status, _, body = handle_request('GET', {'type': 'company-detail'}, FakeAnalyticsClient())
        assert status == 200
        assert body == {'type': 'company-detail', 'error': 'Company name required'}

    def test_upstream_failure_is_500(self, caplog):
        status, headers, body = handle_request('GET', {'type': 'regions'}, FailingClient('quota exceeded'))
        assert status == 500
        assert body == {'error': 'quota exceeded'}
        assert headers['Access-Control-Allow-Origin'] == '*'
        assert 'quota exceeded' in caplog.text

    def test_uses_shared_client_when_none_given(self):
        with patch('services.ga4.runner.get_ga4_client', return_value=FakeAnalyticsClient([OVERVIEW_ROW])) as get:
            status, _, body = handle_request('GET', {}, None)
        get.assert_called_once_with()
        assert status == 200
        assert body['type'] == 'overview'

    def test_missing_credentials_is_500(self):
        with patch('services.ga4.runner.get_ga4_client', side_effect=RuntimeError('GA_CLIENT_EMAIL and GA_PRIVATE_KEY must be set')):
            status, _, body = handle_request('GET', {}, None)
        assert status == 500
        assert 'GA_CLIENT_EMAIL' in body['error']
