"""
Outreach Roadmap - Excel Report Exporter
One styled sheet per channel. KPI, gap and plan cells are live formulas over
the input cells on the same sheet, so editing inputs in Excel recomputes the
results. Formula text is built from a name -> address table filled in as the
rows are written.
"""
import io, re, copy, logging
from datetime import date, datetime

from engines.funnel import (
    TOOLS, TOOL_DETAILS, SETTINGS, PERFORMANCE, TARGETS, SENT_LABELS, FINAL_ACTION_LABELS,
    is_accept_gated, sent_field, reply_field,
)
from engines.kpi import GAP_METRICS, ACCEPTANCE_METRIC
from engines.planner import plan_chain, final_rate

CREATOR = 'Outreach Roadmap'
PERCENT_NOTE = 'Enter as a whole number (e.g., 35 for 35%)'

FORMATS = {'currency': '$#,##0', 'number': '#,##0', 'percent': '0.00%'}

# ARGB
BLUE = 'FF2563EB'; WHITE = 'FFFFFFFF'; LIGHT = 'FFE5E7EB'; KEY = 'FFD1D5DB'
SECTION_BG = 'FF374151'; HEADER_BG = 'FF4B5563'; BASE_BG = 'FF1F2937'; STRIPE_BG = 'FF2D3748'
GREEN = 'FF10B981'; RED = 'FFEF4444'; GREY = 'FF6B7280'; ACCENT = 'FF60A5FA'

COLUMN_WIDTHS = {'A': 35, 'B': 20, 'C': 20, 'D': 20}


class ExportUnavailable(RuntimeError):
    """The spreadsheet library is missing or failed to initialise."""


def report_filename(day=None):
    day = day or date.today()
    return f"OutreachRoadmap_FullPlan_{day:%Y-%m-%d}.xlsx"


def sheet_title(tool):
    return re.sub(r' & | ', '_', TOOL_DETAILS[tool]['name'])[:31]


def build_report(state, created=None):
    """Serialise the state into an .xlsx workbook and return its bytes."""
    try:
        from openpyxl import Workbook
    except ImportError as e:
        raise ExportUnavailable(
            'Excel export library could not be loaded. Install openpyxl and try again.') from e

    snapshot = copy.deepcopy(state)
    styles = _styles()

    wb = Workbook()
    wb.properties.creator = CREATOR
    wb.properties.created = created or datetime.now()

    for i, tool in enumerate(TOOLS):
        ws = wb.active if i == 0 else wb.create_sheet()
        ws.title = sheet_title(tool)
        _write_tool_sheet(ws, snapshot, tool, styles)

    buf = io.BytesIO()
    wb.save(buf)
    logging.info(f"Report built: {len(TOOLS)} sheets, {buf.tell():,} bytes")
    return buf.getvalue()


# ══════════════════════════════════════════════════════════════
#  STYLES
# ══════════════════════════════════════════════════════════════

def _styles():
    from openpyxl.styles import Font, PatternFill, Alignment

    def fill(argb):
        return PatternFill(start_color=argb, end_color=argb, fill_type='solid')

    return {
        'title': {'font': Font(size=16, bold=True, color=WHITE), 'fill': fill(BLUE),
                  'alignment': Alignment(horizontal='center', vertical='center')},
        'section': {'font': Font(size=12, bold=True, color=WHITE), 'fill': fill(SECTION_BG),
                    'alignment': Alignment(horizontal='left', vertical='center')},
        'tableHeader': {'font': Font(bold=True, color=LIGHT), 'fill': fill(HEADER_BG),
                        'alignment': Alignment(horizontal='center', vertical='center')},
        'base': {'font': Font(color=LIGHT), 'fill': fill(BASE_BG), 'alignment': Alignment(vertical='center')},
        'stripe': {'font': Font(color=LIGHT), 'fill': fill(STRIPE_BG), 'alignment': Alignment(vertical='center')},
        'key': {'font': Font(bold=True, color=KEY)},
        'finalLabel': {'font': Font(size=12, bold=True, color=ACCENT), 'fill': fill(BASE_BG),
                       'alignment': Alignment(horizontal='center', vertical='center')},
        'finalValue': {'font': Font(size=24, bold=True, color=WHITE), 'fill': fill(BASE_BG),
                       'alignment': Alignment(horizontal='center', vertical='center')},
        'goodGap': {'font': Font(color=GREEN, bold=True)},
        'badGap': {'font': Font(color=RED, bold=True)},
        'neutralGap': {'font': Font(color=GREY)},
    }


def _apply(cell, *parts, number_format=None):
    merged = {}
    for part in parts:
        merged.update(part)
    for attr, value in merged.items():
        setattr(cell, attr, value)
    if number_format:
        cell.number_format = number_format


# ══════════════════════════════════════════════════════════════
#  SHEET WRITER
# ══════════════════════════════════════════════════════════════

class SheetWriter:
    """Writes rows top to bottom and records named cell addresses."""

    def __init__(self, ws, styles):
        self.ws = ws; self.styles = styles
        self.row = 1
        self.refs = {}

    def ref(self, name):
        return self.refs[name]

    def spacer(self):
        self.row += 1

    def banner(self, value, style, height=None):
        cell = self.ws.cell(row=self.row, column=1, value=value)
        self.ws.merge_cells(start_row=self.row, start_column=1, end_row=self.row, end_column=4)
        _apply(cell, style)
        if height:
            self.ws.row_dimensions[self.row].height = height
        self.row += 1
        return cell

    def header(self, labels):
        for col, label in enumerate(labels, 1):
            _apply(self.ws.cell(row=self.row, column=col, value=label), self.styles['tableHeader'])
        self.row += 1

    def item(self, index, label, value, name=None, number_format=None, note=None):
        """Label in A, value (or formula) in B; records B's address under name."""
        base = self.styles['stripe'] if index % 2 else self.styles['base']
        _apply(self.ws.cell(row=self.row, column=1, value=label), base, self.styles['key'])
        cell = self.ws.cell(row=self.row, column=2, value=value)
        _apply(cell, base, number_format=number_format)
        if note:
            from openpyxl.comments import Comment
            cell.comment = Comment(note, CREATOR)
        if name:
            self.refs[name] = cell.coordinate
        self.row += 1
        return cell


def target_ref(field):
    return f"target.{field}"


def _ratio(num, den):
    return f"IF({den}>0,{num}/{den},0)"


def _divide_by_rate(prev, rate_ref):
    return f"ROUNDUP(IF(({rate_ref}/100)>0,{prev}/({rate_ref}/100),0),0)"


def _write_tool_sheet(ws, state, tool, styles):
    w = SheetWriter(ws, styles)
    settings = state[SETTINGS]
    perf = state[tool][PERFORMANCE]
    targets = state[tool][TARGETS]

    w.banner(TOOL_DETAILS[tool]['name'], styles['title'], height=30)
    w.spacer()

    # ── Global settings ──
    w.banner('Global Settings', styles['section'])
    w.item(0, 'Offer Name', settings['offerName'], name='offerName')
    w.item(1, 'Offer Price', settings['offerPrice'], name='offerPrice', number_format=FORMATS['currency'])
    w.item(2, 'Target Revenue Goal', settings['targetRevenueGoal'], name='targetRevenueGoal',
           number_format=FORMATS['currency'])
    w.spacer()

    # ── Current performance ──
    w.banner('Current Performance Data', styles['section'])
    if is_accept_gated(tool):
        perf_rows = [('Connection Requests Sent', 'connectionRequestsSent'),
                     ('Total Accepted Requests', 'totalAcceptedRequests')]
    else:
        perf_rows = [(SENT_LABELS[tool], 'messagesSent'), ('Total Replies', 'totalReplies')]
    perf_rows += [('Positive Replies', 'positiveReplies'), ('Meetings Scheduled', 'meetingsScheduled'),
                  ('Total Shows', 'totalShows'), ('Deals Closed', 'dealsClosed'),
                  ('Sales Cycle Length (Days)', 'salesCycleLength')]
    for i, (label, field) in enumerate(perf_rows):
        w.item(i, label, perf[field], name=field, number_format=FORMATS['number'])
    w.spacer()

    # ── Reference targets ──
    w.banner('Reference KPI Targets', styles['section'])
    target_rows = [('Target Request Acceptance Rate (%)', 'requestAcceptanceRate')] if is_accept_gated(tool) else []
    target_rows += [('Target Positive Reply Rate (%)', 'positiveReplyRate'),
                    ('Target Meeting Booking Rate (%)', 'meetingBookingRate'),
                    ('Target Show Up Rate (%)', 'showUpRate'),
                    ('Target Close Rate (%)', 'closeRate'),
                    ('Target Average Deal Value ($)', 'avgDealValue'),
                    ('Target Sales Cycle Length (Days)', 'salesCycleLength')]
    for i, (label, field) in enumerate(target_rows):
        is_rate = label.endswith('(%)')
        w.item(i, label, targets[field], name=target_ref(field),
               number_format=FORMATS['currency'] if field == 'avgDealValue' else FORMATS['number'],
               note=PERCENT_NOTE if is_rate else None)
    w.spacer()

    _write_gap_analysis(w, tool)
    w.spacer()
    _write_action_plan(w, tool)

    for col, width in COLUMN_WIDTHS.items():
        ws.column_dimensions[col].width = width


def current_formula(key, tool, refs):
    """Excel expression for the current value of a KPI."""
    r = refs
    if key == 'requestAcceptanceRate':
        return _ratio(r['totalAcceptedRequests'], r['connectionRequestsSent'])
    if key == 'positiveReplyRate':
        # Volume-sent denominator for direct-reply channels.
        den = reply_field(tool) if is_accept_gated(tool) else sent_field(tool)
        return _ratio(r['positiveReplies'], r[den])
    if key == 'meetingBookingRate':
        return _ratio(r['meetingsScheduled'], r['positiveReplies'])
    if key == 'showUpRate':
        return _ratio(r['totalShows'], r['meetingsScheduled'])
    if key == 'closeRate':
        return _ratio(r['dealsClosed'], r['totalShows'])
    if key == 'avgDealValue':
        deals = r['dealsClosed']; price = r['offerPrice']
        return f"IF({deals}>0,({deals}*{price})/{deals},{price})"
    if key == 'salesCycleLength':
        return r['salesCycleLength']
    raise KeyError(key)


def _write_gap_analysis(w, tool):
    from openpyxl.formatting.rule import FormulaRule

    styles = w.styles
    w.banner('KPI Gap Analysis', styles['section'])
    w.header(['Metric', 'Current', 'Target', 'Gap'])

    metrics = ([ACCEPTANCE_METRIC] if is_accept_gated(tool) else []) + GAP_METRICS
    for i, (key, label, kind, shorter_is_better) in enumerate(metrics):
        row = w.row
        tref = w.ref(target_ref(key))
        target = f"{tref}/100" if kind == 'percent' else tref
        fmt = {'percent': FORMATS['percent'], 'currency': FORMATS['currency']}.get(kind, FORMATS['number'])
        if kind == 'days':
            label = f"{label} (Days)"

        base = styles['stripe'] if i % 2 else styles['base']
        _apply(w.ws.cell(row=row, column=1, value=label), base, styles['key'])
        _apply(w.ws.cell(row=row, column=2, value=f"={current_formula(key, tool, w.refs)}"), base, number_format=fmt)
        _apply(w.ws.cell(row=row, column=3, value=f"={target}"), base, number_format=fmt)
        gap = w.ws.cell(row=row, column=4, value=f"=B{row}-C{row}")
        _apply(gap, base, number_format=fmt)

        # Below target is bad, except for cycle length where shorter wins.
        below, above = ('goodGap', 'badGap') if shorter_is_better else ('badGap', 'goodGap')
        addr = gap.coordinate
        w.ws.conditional_formatting.add(addr, FormulaRule(formula=[f"{addr}<0"], font=styles[below]['font']))
        w.ws.conditional_formatting.add(addr, FormulaRule(formula=[f"{addr}>0"], font=styles[above]['font']))
        w.ws.conditional_formatting.add(addr, FormulaRule(formula=[f"{addr}=0"], font=styles['neutralGap']['font']))
        w.row += 1


def _write_action_plan(w, tool):
    styles = w.styles
    w.banner('Final Action Plan', styles['section'])

    price = w.ref('offerPrice'); goal = w.ref('targetRevenueGoal')
    w.item(0, 'Deals to Close', f"=ROUNDUP(IF({price}>0,{goal}/{price},0),0)",
           name='dealsNeeded', number_format=FORMATS['number'])
    prev = 'dealsNeeded'
    for i, (key, label, rate) in enumerate(plan_chain(tool), 1):
        w.item(i, label, f"={_divide_by_rate(w.ref(prev), w.ref(target_ref(rate)))}",
               name=key, number_format=FORMATS['number'])
        prev = key
    w.spacer()

    w.banner(FINAL_ACTION_LABELS[tool], styles['finalLabel'])
    final = f"={_divide_by_rate(w.ref(prev), w.ref(target_ref(final_rate(tool))))}"
    cell = w.banner(final, styles['finalValue'], height=40)
    cell.number_format = FORMATS['number']
