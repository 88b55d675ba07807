"""
GA4 report function for event-style serverless platforms (Netlify Functions, AWS Lambda proxy).

    GET /.netlify/functions/ga4-report?type=companies&startDate=7daysAgo&prefecture=東京都
"""
import json
import logging
import sys

from config import LOG_LEVEL
from services.ga4.runner import handle_request

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)]
)


def _method(event):
    # REST-style events carry httpMethod, HTTP API v2 events carry requestContext.http.method
    return event.get('httpMethod') or ((event.get('requestContext') or {}).get('http') or {}).get('method') or 'GET'


def make_handler(client=None):
    def handler(event, context=None):
        event = event or {}
        params = event.get('queryStringParameters') or {}
        status, headers, body = handle_request(_method(event), params, client)
        headers = dict(headers, **{'Content-Type': 'application/json'})
        return {
            'statusCode': status,
            'headers': headers,
            'body': '' if body is None else json.dumps(body, ensure_ascii=False),
        }
    return handler


handler = make_handler()
