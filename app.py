from flask import Flask, request, jsonify, make_response
from datetime import datetime
from dotenv import load_dotenv
import os

from config import LOG_LEVEL
from services.ga4.runner import handle_request

import logging, sys

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)]
)

load_dotenv()  # loads .env if present

REPORT_ROUTES = ('/ga4-report', '/api/ga4-report', '/.netlify/functions/ga4-report')


def create_app(client=None):
    """Build the Flask app; pass client to serve reports from something other than GA4."""
    app = Flask(__name__)
    app.config['GA4_CLIENT'] = client

    @app.route('/health/', methods=['GET'])
    def health():
        return jsonify({'status': 'ok', 'time': datetime.now()})

    def ga4_report():
        status, headers, body = handle_request(request.method, request.args, app.config['GA4_CLIENT'])
        resp = make_response(jsonify(body) if body is not None else '', status)
        resp.headers.update(headers)
        return resp

    for i, rule in enumerate(REPORT_ROUTES):
        app.add_url_rule(rule, endpoint=f'ga4_report_{i}', view_func=ga4_report, methods=['GET', 'POST', 'OPTIONS'])

    return app


app = create_app()

if __name__ == '__main__':
    port = int(os.environ.get('PORT', 5000))
    app.run(host='0.0.0.0', port=port, debug=True)
