import re

# processor: converts GA run_report / run_realtime_report responses into list of dict rows

_LEADING_INT = re.compile(r'^\s*([+-]?\d+)')
_LEADING_FLOAT = re.compile(r'^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)')


def process_response(response):
    """Convert a RunReportResponse / RunRealtimeReportResponse into list of dict rows.

    Values are kept as the strings GA4 returns; reports parse the numbers they
    need.
    """
    if response is None:
        return []
    rows = []
    dh = [h.name for h in response.dimension_headers]
    mh = [h.name for h in response.metric_headers]
    for r in response.rows:
        row = {}
        for i, dv in enumerate(r.dimension_values):
            row[dh[i]] = dv.value
        for j, mv in enumerate(r.metric_values):
            row[mh[j]] = mv.value
        rows.append(row)
    return rows


def to_int(value):
    """Leading integer of a GA4 metric string ("12.7" -> 12); 0 when absent."""
    if value is None or value == '':
        return 0
    if isinstance(value, (int, float)):
        return int(value)
    m = _LEADING_INT.match(value)
    return int(m.group(1)) if m else 0


def to_float(value):
    if value is None or value == '':
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    m = _LEADING_FLOAT.match(value)
    return float(m.group(1)) if m else 0.0
