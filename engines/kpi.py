"""
Outreach Roadmap - KPI Engine
Derives funnel conversion rates and revenue from observed performance,
and compares them against the reference targets.
"""
from engines.funnel import is_accept_gated, safe_div, SENT_LABELS

# (key, label, kind, shorterIsBetter); acceptance rate is prepended for LinkedIn
GAP_METRICS = [
    ('positiveReplyRate', 'Positive Reply Rate', 'percent', False),
    ('meetingBookingRate', 'Meeting Booking Rate', 'percent', False),
    ('showUpRate', 'Show Up Rate', 'percent', False),
    ('closeRate', 'Close Rate', 'percent', False),
    ('avgDealValue', 'Average Deal Value', 'currency', False),
    ('salesCycleLength', 'Sales Cycle Length', 'days', True),
]
ACCEPTANCE_METRIC = ('requestAcceptanceRate', 'Request Acceptance Rate', 'percent', False)


def compute_kpis(settings, performance, tool):
    p = performance
    current_revenue = p['dealsClosed'] * settings['offerPrice']

    if is_accept_gated(tool):
        request_acceptance_rate = safe_div(p['totalAcceptedRequests'], p['connectionRequestsSent']) * 100
        positive_reply_rate = safe_div(p['positiveReplies'], p['totalAcceptedRequests']) * 100
    else:
        # Measured against volume sent, not totalReplies, to match the planner.
        request_acceptance_rate = 0
        positive_reply_rate = safe_div(p['positiveReplies'], p['messagesSent']) * 100

    return {
        'requestAcceptanceRate': request_acceptance_rate,
        'positiveReplyRate': positive_reply_rate,
        'meetingBookingRate': safe_div(p['meetingsScheduled'], p['positiveReplies']) * 100,
        'showUpRate': safe_div(p['totalShows'], p['meetingsScheduled']) * 100,
        'closeRate': safe_div(p['dealsClosed'], p['totalShows']) * 100,
        'salesCycleLength': p['salesCycleLength'],
        'currentRevenue': current_revenue,
        'avgDealValue': current_revenue / p['dealsClosed'] if p['dealsClosed'] > 0 else settings['offerPrice'],
    }


def build_gap_analysis(kpis, targets, tool):
    """One row per metric: current vs target and whether it is on track."""
    metrics = ([ACCEPTANCE_METRIC] if is_accept_gated(tool) else []) + GAP_METRICS
    rows = []
    for key, label, kind, shorter_is_better in metrics:
        current = kpis[key]; target = targets[key]
        gap = current - target
        rows.append({
            'key': key, 'label': label, 'kind': kind,
            'current': current, 'target': target, 'gap': gap,
            'shorterIsBetter': shorter_is_better,
            'onTrack': gap <= 0 if shorter_is_better else gap >= 0,
        })
    return rows


def revenue_progress(current, target):
    percentage = min(safe_div(current, target) * 100, 100)
    return {'current': current, 'target': target, 'percentage': percentage}


def funnel_series(kpis, tool):
    """Conversion funnel normalised to 100 at the top-of-funnel stage."""
    if is_accept_gated(tool):
        steps = [('Accepted', 'requestAcceptanceRate'), ('Positive Replies', 'positiveReplyRate')]
        name = 'Requests Sent'
    else:
        steps = [('Positive Replies', 'positiveReplyRate')]
        name = SENT_LABELS[tool]
    steps += [('Meetings', 'meetingBookingRate'), ('Shows', 'showUpRate'), ('Deals', 'closeRate')]

    series = [{'name': name, 'value': 100}]
    value = 100
    for label, key in steps:
        value = value * kpis[key] / 100
        series.append({'name': label, 'value': value})
    return series
