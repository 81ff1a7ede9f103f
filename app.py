"""
Outreach Roadmap - Flask API Server
Owns the session state, persists it to the local snapshot store and routes
requests into the funnel engines (KPIs, projection, revenue plan, export).
"""
import io
import os
import logging
import traceback
from datetime import date
from flask import Flask, jsonify, request, send_file
from engines.funnel import TOOL_DETAILS, SETTINGS, PERFORMANCE, TARGETS, default_state
from engines.kpi import compute_kpis, build_gap_analysis, revenue_progress, funnel_series
from engines.projection import project_from_volume, format_stage, DEFAULT_VOLUME
from engines.planner import plan_from_revenue_goal
from engines.state import UnknownField, apply_field_update, parse_target, resolve_tool, coerce_number
from engines.report import ExportUnavailable, build_report, report_filename
from engines import storage

app = Flask(__name__)

XLSX_MIMETYPE = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'

STATE = {'state': None, 'activeTool': None, 'loaded': False}


def _ensure_loaded():
    if not STATE['loaded']:
        STATE['state'] = storage.load_state()
        STATE['activeTool'] = storage.load_active_tool()
        STATE['loaded'] = True
        logging.info(f"Session restored, active tool {STATE['activeTool']}")
    return STATE['state']


def _commit(new_state):
    """Swap in a new snapshot and persist it; persistence failures are logged only."""
    STATE['state'] = new_state
    storage.save_state(new_state)
    return new_state


def _tool_arg():
    tool = request.args.get('tool') or STATE['activeTool']
    return resolve_tool(tool)


def _kpi_view(state, tool):
    settings = state[SETTINGS]; tool_data = state[tool]
    kpis = compute_kpis(settings, tool_data[PERFORMANCE], tool)
    return {
        'tool': tool,
        'kpis': kpis,
        'gapAnalysis': build_gap_analysis(kpis, tool_data[TARGETS], tool),
        'revenueProgress': revenue_progress(kpis['currentRevenue'], settings['targetRevenueGoal']),
        'funnel': funnel_series(kpis, tool),
    }


def _projection_view(state, tool, volume):
    projection = project_from_volume(state[tool][TARGETS], state[SETTINGS], tool, volume)
    for stage in projection['stages']:
        stage['display'] = format_stage(stage)
    return projection


def _plan_view(state, tool, round_stages=False):
    return plan_from_revenue_goal(state[tool][TARGETS], state[SETTINGS], tool, round_stages=round_stages)


# ══════════════════════════════════════════════════════════════
#  ROUTES
# ══════════════════════════════════════════════════════════════

@app.before_request
def _before():
    _ensure_loaded()


@app.errorhandler(UnknownField)
def _unknown_field(e):
    return jsonify({'error': str(e)}), 400


@app.route('/api/state')
def api_state():
    return jsonify({'state': STATE['state'], 'activeTool': STATE['activeTool'], 'tools': TOOL_DETAILS})


@app.route('/api/active-tool', methods=['POST'])
def api_active_tool():
    body = request.get_json(force=True, silent=True) or {}
    STATE['activeTool'] = resolve_tool(body.get('tool') if isinstance(body, dict) else None)
    storage.save_active_tool(STATE['activeTool'])
    return jsonify({'status': 'ok', 'activeTool': STATE['activeTool']})


@app.route('/api/field', methods=['POST'])
def api_field():
    """Apply one field edit: {field, value} for settings, {tool, section, field, value} for a channel."""
    body = request.get_json(force=True, silent=True) or {}
    target = parse_target(body)
    new_state = _commit(apply_field_update(STATE['state'], target, body.get('value')))
    return jsonify({'status': 'ok', 'state': new_state})


@app.route('/api/reset', methods=['POST'])
def api_reset():
    new_state = _commit(default_state())
    return jsonify({'status': 'ok', 'message': 'State reset to defaults', 'state': new_state})


@app.route('/api/kpis')
def api_kpis():
    return jsonify(_kpi_view(STATE['state'], _tool_arg()))


@app.route('/api/projection')
def api_projection():
    volume = coerce_number(request.args.get('volume', DEFAULT_VOLUME))
    return jsonify(_projection_view(STATE['state'], _tool_arg(), volume))


@app.route('/api/plan')
def api_plan():
    round_stages = request.args.get('roundStages', '').lower() in ('1', 'true', 'yes')
    return jsonify(_plan_view(STATE['state'], _tool_arg(), round_stages))


@app.route('/api/view')
def api_view():
    """Everything the dashboard renders for the active tool."""
    state = STATE['state']; tool = STATE['activeTool']
    return jsonify({
        'activeTool': tool,
        'toolDetails': TOOL_DETAILS[tool],
        'programSettings': state[SETTINGS],
        'currentPerformance': state[tool][PERFORMANCE],
        'referenceTargets': state[tool][TARGETS],
        **_kpi_view(state, tool),
        'projection': _projection_view(state, tool, DEFAULT_VOLUME),
        'plan': _plan_view(state, tool),
    })


@app.route('/api/export')
def api_export():
    """Export all three channels to a styled Excel workbook."""
    try:
        content = build_report(STATE['state'])
    except ExportUnavailable as e:
        logging.warning(f"Export skipped: {e}")
        return jsonify({'error': str(e), 'recoverable': True}), 503
    except Exception as e:
        traceback.print_exc()
        return jsonify({'error': str(e)}), 500
    return send_file(io.BytesIO(content), mimetype=XLSX_MIMETYPE, as_attachment=True,
                     download_name=report_filename(date.today()))


if __name__ == '__main__':
    logging.basicConfig(level=os.environ.get('LOG_LEVEL', 'INFO'),
                        format='%(asctime)s %(levelname)s %(name)s: %(message)s')
    app.run(debug=False, host='0.0.0.0', port=int(os.environ.get('PORT', 5000)))
