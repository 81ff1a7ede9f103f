"""
Outreach Roadmap - Funnel Model
Channel ("tool") definitions, declared state fields and the default snapshot.
The three channels share one data shape; the channel only selects formulas.
"""
import copy, math

LIO = 'LIO'
FIO = 'FIO'
EO = 'EO'

TOOLS = (LIO, FIO, EO)

TOOL_DETAILS = {
    LIO: {'name': 'LinkedIn Outbound Plan', 'description': 'Plan your LinkedIn outreach strategy.'},
    FIO: {'name': 'Facebook & IG DM Outreach', 'description': 'Plan your Meta platforms outreach.'},
    EO:  {'name': 'Email Outreach', 'description': 'Plan your cold email campaigns.'},
}

# ── Channel-dependent wording ──
SENT_LABELS = {LIO: 'Connection Requests Sent', FIO: 'Messages Sent', EO: 'Emails Sent'}
FINAL_ACTION_LABELS = {LIO: 'Connection Requests to Send', FIO: 'Messages to Send', EO: 'Emails to Send'}
VOLUME_INPUT_LABELS = {LIO: 'Target Connection Requests', FIO: 'Target Messages to Send', EO: 'Target Emails to Send'}

SETTINGS = 'programSettings'
PERFORMANCE = 'currentPerformance'
TARGETS = 'referenceTargets'
TOOL_SECTIONS = (PERFORMANCE, TARGETS)

# Declared field types drive coercion of raw input.
SETTINGS_FIELDS = {'offerName': str, 'offerPrice': float, 'targetRevenueGoal': float}

PERFORMANCE_FIELDS = {
    'connectionRequestsSent': float, 'totalAcceptedRequests': float,
    'messagesSent': float, 'totalReplies': float,
    'positiveReplies': float, 'meetingsScheduled': float, 'totalShows': float,
    'dealsClosed': float, 'salesCycleLength': float,
}

TARGET_FIELDS = {
    'requestAcceptanceRate': float, 'positiveReplyRate': float, 'meetingBookingRate': float,
    'showUpRate': float, 'closeRate': float, 'avgDealValue': float, 'salesCycleLength': float,
}

SECTION_FIELDS = {SETTINGS: SETTINGS_FIELDS, PERFORMANCE: PERFORMANCE_FIELDS, TARGETS: TARGET_FIELDS}


INITIAL_STATE = {
    SETTINGS: {
        'offerName': 'High-Ticket Coaching',
        'offerPrice': 5000,
        'targetRevenueGoal': 100000,
    },
    LIO: {
        PERFORMANCE: {
            'connectionRequestsSent': 1000, 'totalAcceptedRequests': 300,
            'positiveReplies': 30, 'meetingsScheduled': 15, 'totalShows': 12,
            'dealsClosed': 3, 'salesCycleLength': 30,
            'messagesSent': 0, 'totalReplies': 0,
        },
        TARGETS: {
            'requestAcceptanceRate': 35.0, 'positiveReplyRate': 15.0, 'meetingBookingRate': 50.0,
            'showUpRate': 85.0, 'closeRate': 25.0, 'avgDealValue': 5000, 'salesCycleLength': 25,
        },
    },
    FIO: {
        PERFORMANCE: {
            'messagesSent': 2000, 'totalReplies': 100,
            'positiveReplies': 20, 'meetingsScheduled': 10, 'totalShows': 8,
            'dealsClosed': 2, 'salesCycleLength': 20,
            'connectionRequestsSent': 0, 'totalAcceptedRequests': 0,
        },
        TARGETS: {
            'requestAcceptanceRate': 0, 'positiveReplyRate': 25.0, 'meetingBookingRate': 50.0,
            'showUpRate': 90.0, 'closeRate': 30.0, 'avgDealValue': 5000, 'salesCycleLength': 15,
        },
    },
    EO: {
        PERFORMANCE: {
            'messagesSent': 10000, 'totalReplies': 500,
            'positiveReplies': 50, 'meetingsScheduled': 25, 'totalShows': 22,
            'dealsClosed': 5, 'salesCycleLength': 45,
            'connectionRequestsSent': 0, 'totalAcceptedRequests': 0,
        },
        TARGETS: {
            'requestAcceptanceRate': 0, 'positiveReplyRate': 10.0, 'meetingBookingRate': 60.0,
            'showUpRate': 80.0, 'closeRate': 20.0, 'avgDealValue': 5000, 'salesCycleLength': 40,
        },
    },
}


def default_state():
    return copy.deepcopy(INITIAL_STATE)


def is_tool(tool):
    return tool in TOOLS


def is_accept_gated(tool):
    """LinkedIn has an explicit request/accept stage before any reply."""
    return tool == LIO


def sent_field(tool):
    return 'connectionRequestsSent' if is_accept_gated(tool) else 'messagesSent'


def reply_field(tool):
    return 'totalAcceptedRequests' if is_accept_gated(tool) else 'totalReplies'


def safe_div(num, den):
    """Division guard: zero or negative denominators give 0."""
    if den is None or den <= 0:
        return 0
    return num / den


def pct(rate):
    return rate / 100


def _section_ok(values, fields):
    if not isinstance(values, dict):
        return False
    for field, kind in fields.items():
        if field not in values:
            return False
        v = values[field]
        if kind is str and not isinstance(v, str):
            return False
        if kind is float:
            if isinstance(v, bool) or not isinstance(v, (int, float)):
                return False
            if not math.isfinite(v) or v < 0:
                return False
    return True


def is_complete(state):
    """True when every declared field is present with its type; numbers must be finite and non-negative."""
    if not isinstance(state, dict):
        return False
    if not _section_ok(state.get(SETTINGS), SETTINGS_FIELDS):
        return False
    for tool in TOOLS:
        tool_data = state.get(tool)
        if not isinstance(tool_data, dict):
            return False
        for section in TOOL_SECTIONS:
            if not _section_ok(tool_data.get(section), SECTION_FIELDS[section]):
                return False
    return True
