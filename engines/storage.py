"""
Outreach Roadmap - Snapshot Store
Local key-value persistence of the state snapshot and the active channel.
Each key lives in its own JSON file; read problems fall back to defaults and
write problems only cost durability.
"""
import os, json, logging

from engines.funnel import LIO, default_state, is_complete, is_tool

DATA_DIR = os.environ.get('OUTREACH_DATA_DIR',
                          os.path.join(os.path.dirname(os.path.dirname(__file__)), 'data'))

STATE_KEY = 'outreachRoadmapState'
ACTIVE_TOOL_KEY = 'outreachRoadmapActiveTool'


def _key_path(key, store_dir=None):
    return os.path.join(store_dir or DATA_DIR, f"{key}.json")


def read_key(key, store_dir=None):
    """Stored value for key, or None when absent or unreadable."""
    path = _key_path(key, store_dir)
    if not os.path.exists(path):
        return None
    try:
        with open(path, encoding='utf-8') as fh:
            return json.load(fh)
    except (OSError, ValueError) as e:
        logging.warning(f"Could not load '{key}' from {path}: {e}")
        return None


def write_key(key, value, store_dir=None):
    path = _key_path(key, store_dir)
    try:
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, 'w', encoding='utf-8') as fh:
            json.dump(value, fh, indent=2)
        return True
    except (OSError, TypeError, ValueError) as e:
        logging.warning(f"Could not save '{key}' to {path}: {e}")
        return False


def load_state(store_dir=None):
    stored = read_key(STATE_KEY, store_dir)
    if stored is None:
        return default_state()
    if not is_complete(stored):
        logging.warning(f"Stored '{STATE_KEY}' is incomplete, falling back to defaults")
        return default_state()
    return stored


def save_state(state, store_dir=None):
    return write_key(STATE_KEY, state, store_dir)


def load_active_tool(store_dir=None):
    tool = read_key(ACTIVE_TOOL_KEY, store_dir)
    if tool is not None and not is_tool(tool):
        logging.warning(f"Stored '{ACTIVE_TOOL_KEY}' has unknown tool {tool!r}, using {LIO}")
    return tool if is_tool(tool) else LIO


def save_active_tool(tool, store_dir=None):
    return write_key(ACTIVE_TOOL_KEY, tool, store_dir)
