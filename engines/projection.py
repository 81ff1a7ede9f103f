"""
Outreach Roadmap - Forward Projector
Projects downstream funnel results from a chosen top-of-funnel volume
using the reference target rates.
"""
from engines.funnel import is_accept_gated, pct, VOLUME_INPUT_LABELS

DEFAULT_VOLUME = 1000

# (key, label, target rate applied to reach this stage)
STAGES = [
    ('acceptedRequests', 'Accepted Requests', 'requestAcceptanceRate'),
    ('positiveReplies', 'Positive Replies', 'positiveReplyRate'),
    ('meetingsScheduled', 'Meetings Scheduled', 'meetingBookingRate'),
    ('shows', 'Shows', 'showUpRate'),
    ('dealsClosed', 'Deals Closed', 'closeRate'),
]


def project_from_volume(targets, settings, tool, volume):
    stages = STAGES if is_accept_gated(tool) else STAGES[1:]
    running = volume
    projected = []
    for key, label, rate in stages:
        running = running * pct(targets[rate])
        projected.append({'key': key, 'label': label, 'value': running, 'isCurrency': False})

    revenue = running * settings['offerPrice']
    projected.append({'key': 'projectedRevenue', 'label': 'Projected Revenue', 'value': revenue, 'isCurrency': True})
    return {
        'tool': tool,
        'volume': volume,
        'volumeLabel': VOLUME_INPUT_LABELS[tool],
        'stages': projected,
        'projectedRevenue': revenue,
    }


def format_stage(stage):
    """Dashboard rendering: fractional counts below 1 keep two decimals."""
    value = stage['value']
    if stage.get('isCurrency'):
        return f"${round(value):,}"
    if value == 0:
        return '0'
    if 0 < value < 1:
        return f"{value:.2f}"
    return f"{round(value):,}"
