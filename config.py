import os
from dotenv import load_dotenv
load_dotenv()

# GA4 property and service-account credentials
GA4_PROPERTY_ID = os.getenv('GA4_PROPERTY_ID', '257667457')
GA_CLIENT_EMAIL = os.getenv('GA_CLIENT_EMAIL')
# env files usually carry the PEM with literal "\n" sequences
GA_PRIVATE_KEY = (os.getenv('GA_PRIVATE_KEY') or '').replace('\\n', '\n') or None

# 'customUser' or 'customEvent', depending on how the enrichment tag registers its dimensions
CUSTOM_DIMENSION_SCOPE = os.getenv('CUSTOM_DIMENSION_SCOPE', 'customUser')

# 'total' -> active user count only, 'companies' -> top companies by active users
REALTIME_MODE = os.getenv('REALTIME_MODE', 'total')

LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')

# Request defaults
DEFAULT_REPORT_TYPE = 'overview'
DEFAULT_START_DATE = '30daysAgo'
DEFAULT_END_DATE = 'today'
DEFAULT_URL_MATCH_TYPE = 'contains'

CORS_HEADERS = {
    'Access-Control-Allow-Origin': '*',
    'Access-Control-Allow-Headers': 'Content-Type',
    'Access-Control-Allow-Methods': 'GET, POST, OPTIONS',
}

# Row limits per report
REGIONS_LIMIT = 20
COMPANIES_LIMIT = 100
PAGES_LIMIT = 50
COMPANY_DETAIL_PAGES_LIMIT = 20
COMPANIES_BY_URL_LIMIT = 100
SUBPAGES_LIMIT = 100
REALTIME_TOP_COMPANIES = 10

# Device category -> dashboard label / chart colour
DEVICE_LABELS = {'desktop': 'PC', 'mobile': 'Mobile', 'tablet': 'Tablet'}
DEVICE_COLORS = {'desktop': '#8b5cf6', 'mobile': '#22c55e', 'tablet': '#f97316'}
DEFAULT_DEVICE_COLOR = '#94a3b8'

UNKNOWN_COMPANY = '不明'
UNKNOWN_REGION = '(not set)'
