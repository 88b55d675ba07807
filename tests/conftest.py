import pytest

from services.ga4.client import AnalyticsClient


class FakeAnalyticsClient(AnalyticsClient):
    """Records every ReportQuery and answers with canned rows, in order."""

    def __init__(self, *responses, realtime=None):
        self.responses = list(responses)
        self.realtime_rows = realtime or []
        self.queries = []
        self.realtime_queries = []

    def run_report(self, query):
        self.queries.append(query)
        if not self.responses:
            return []
        return self.responses.pop(0)

    def run_realtime_report(self, query):
        self.realtime_queries.append(query)
        return self.realtime_rows


class FailingClient(AnalyticsClient):
    def __init__(self, message='PERMISSION_DENIED: User does not have sufficient permissions'):
        self.message = message

    def run_report(self, query):
        raise RuntimeError(self.message)

    def run_realtime_report(self, query):
        raise RuntimeError(self.message)


@pytest.fixture
def fake_client():
    return FakeAnalyticsClient()


@pytest.fixture
def make_client():
    return FakeAnalyticsClient
