"""
Outreach Roadmap - Backward Planner
Works from the revenue goal back to the top-of-funnel action: deals, shows,
meetings, positive replies and (LinkedIn) accepted connections needed.
A zero or negative target rate yields 0 for that stage and everything
computed from it.
"""
import math

from engines.funnel import is_accept_gated, safe_div, pct, FINAL_ACTION_LABELS

# (key, label, target rate dividing the previous stage)
PLAN_STAGES = [
    ('showsNeeded', 'Meetings to Attend (Shows)', 'closeRate'),
    ('meetingsNeeded', 'Meetings to Schedule', 'showUpRate'),
    ('positiveRepliesNeeded', 'Positive Replies to Generate', 'meetingBookingRate'),
]
CONNECTIONS_STAGE = ('connectionsNeeded', 'Connections to Accept', 'positiveReplyRate')


def round_up(value):
    """Whole units needed; float noise like 100.00000000000001 stays 100."""
    return math.ceil(round(value, 9))


def plan_chain(tool):
    """Stages after deals, in reverse funnel order."""
    return PLAN_STAGES + ([CONNECTIONS_STAGE] if is_accept_gated(tool) else [])


def final_rate(tool):
    """Target rate converting the last plan stage into the top-of-funnel action."""
    return 'requestAcceptanceRate' if is_accept_gated(tool) else 'positiveReplyRate'


def plan_from_revenue_goal(targets, settings, tool, round_stages=False):
    """Required count at every stage for the revenue goal.

    With round_stages each stage is rounded up before it feeds the next one,
    which is how the chained ROUNDUP cells of the exported workbook compute.
    """
    step = round_up if round_stages else (lambda v: v)

    deals = step(safe_div(settings['targetRevenueGoal'], settings['offerPrice']))
    stages = [_stage('dealsNeeded', 'Deals to Close', deals)]

    running = deals
    for key, label, rate in plan_chain(tool):
        running = step(safe_div(running, pct(targets[rate])))
        stages.append(_stage(key, label, running))

    final_value = step(safe_div(running, pct(targets[final_rate(tool)])))

    return {
        'tool': tool,
        'targetRevenueGoal': settings['targetRevenueGoal'],
        'roundStages': round_stages,
        'stages': stages,
        'finalAction': {
            'label': FINAL_ACTION_LABELS[tool],
            'value': final_value,
            'display': round_up(final_value),
        },
    }


def _stage(key, label, value):
    return {'key': key, 'label': label, 'value': value, 'display': round_up(value)}
