# -*- coding: utf-8 -*-
"""
Configuration file for the flow builder.

This file contains all the constants used throughout the application,
including colors, dimensions, limits, storage keys and UI strings.
"""

from PyQt5.QtGui import QColor, QFont
from PyQt5.QtCore import Qt

# --- Version ---
__version__ = '0.1.0'

# --- General Visuals ---
# Pen Styles & Widths
PEN_WIDTH_GRID = 1
PEN_WIDTH_NORMAL = 2
PEN_WIDTH_HIGHLIGHT = 3
PEN_WIDTH_CONNECTION = 3
PEN_STYLE_DASH = Qt.DashLine

# --- Canvas & Viewport ---
GRID_SIZE = 20
GRID_SNAP_ENABLED = True
GRID_VISIBLE = True
CANVAS_BACKGROUND_COLOR = QColor(10, 10, 10)
GRID_COLOR = QColor(255, 255, 255, 20)

# View Panning and Zooming
MIN_ZOOM_FACTOR = 0.1
MAX_ZOOM_FACTOR = 3.0
ZOOM_STEP_FACTOR = 1.2 # Factor for each zoom step (wheel, toolbar, Ctrl +/-)
INITIAL_ZOOM_FACTOR = 1.0
FLOAT_COMPARISON_EPSILON = 1e-9 # For comparing float values like zoom levels
PAN_MODIFIER = Qt.ShiftModifier # Held with the primary button to pan on empty canvas
ZOOM_MODIFIER = Qt.ControlModifier # Held with the wheel to zoom

# --- Blocks ---
BLOCK_WIDTH = 200
BLOCK_HEIGHT = 80
BLOCK_CORNER_RADIUS = 10
BLOCK_ACCENT_HEIGHT = 4
BLOCK_TEXT_LEFT_PADDING = 15
BLOCK_TITLE_BASELINE = 30 # From block top to title baseline
BLOCK_DESCRIPTION_BASELINE = 50 # From block top to description baseline
BLOCK_DESCRIPTION_MAX_CHARS = 25
BLOCK_FILL_COLOR = QColor(26, 26, 46, 242)
BLOCK_HOVER_FILL_COLOR = QColor(26, 26, 46, 250)
BLOCK_SELECTED_FILL_COLOR = QColor(0, 212, 255, 64)
BLOCK_BORDER_COLOR = QColor(0, 212, 255, 128)
BLOCK_HOVER_BORDER_COLOR = QColor(0, 212, 255, 178)
BLOCK_SELECTED_BORDER_COLOR = QColor(0, 212, 255)
BLOCK_TITLE_COLOR = QColor(255, 255, 255)
BLOCK_DESCRIPTION_COLOR = QColor(255, 255, 255, 153)
DEFAULT_ACCENT_COLOR = '#00d4ff'

# --- Ports ---
PORT_RADIUS = 6 # Screen pixels, independent of zoom
PORT_HIT_RADIUS = 10 # Screen pixels, independent of zoom
PORT_TOP_PADDING = GRID_SIZE # From block top to center of first port
PORT_VERTICAL_SPACING = GRID_SIZE # Vertical distance between port centers
INPUT_PORT_COLOR = QColor(0, 212, 255)
OUTPUT_PORT_COLOR = QColor(0, 255, 136)
PORT_HIGHLIGHT_COLOR = QColor(255, 170, 0)
PORT_LABEL_BACKGROUND = QColor(0, 0, 0, 204)
PORT_LABEL_HEIGHT = 18
PORT_LABEL_CHAR_WIDTH = 6 # Approximate width per character for the label tag
PORT_LABEL_OFFSET = 8 # Gap between port marker and its label tag

# --- Connections ---
CONNECTION_COLOR = QColor(0, 255, 136, 178)
CONNECTION_ARROW_COLOR = QColor(0, 255, 136)
CONNECTION_PREVIEW_COLOR = QColor(0, 212, 255, 128)
BEZIER_CONTROL_OFFSET = 100 # World units the control points extend horizontally
ARROW_LENGTH = 10
ARROW_HALF_WIDTH = 8
PREVIEW_ENDPOINT_RADIUS = 8

# --- Minimap ---
MINIMAP_WIDTH = 200
MINIMAP_HEIGHT = 150
MINIMAP_MARGIN = 10
MINIMAP_FILL_RATIO = 0.8 # Share of the minimap the graph bounding box may occupy
MINIMAP_BACKGROUND_COLOR = QColor(0, 0, 0, 204)
MINIMAP_BLOCK_COLOR = QColor(0, 212, 255, 128)
MINIMAP_VIEWPORT_COLOR = QColor(0, 255, 136)

# --- Fonts ---
FONT_FAMILY = 'sans-serif'
FONT_SIZE_BLOCK_TITLE = 14
FONT_SIZE_BLOCK_DESCRIPTION = 11
FONT_SIZE_PORT_LABEL = 10
FONT_WEIGHT_BLOCK_TITLE = QFont.Bold

# --- Auto-Align ---
AUTO_ALIGN_START_X = 100
AUTO_ALIGN_START_Y = 100
AUTO_ALIGN_COLUMN_STEP = 350
AUTO_ALIGN_ROW_GAP = 50

# --- History ---
HISTORY_MAX_LENGTH = 50

# --- Persistence ---
STORAGE_FLOWS_KEY = 'aevov_flows'
STORAGE_AUTOSAVE_KEY = 'aevov_flow_autosave'
STORAGE_TEMPLATES_KEY = 'aevov_flow_templates'
AUTOSAVE_FLOW_ID = 'autosave'
AUTOSAVE_FLOW_NAME = 'AutoSave'
AUTOSAVE_INTERVAL_MS = 30000
DEFAULT_FLOW_NAME = 'Untitled Flow'
SETTINGS_ORGANIZATION = 'Aevov'
SETTINGS_APPLICATION = 'FlowBuilder'
EXPORT_JSON_INDENT = 2
BLOCK_ID_PREFIX = 'block_'
CONNECTION_ID_PREFIX = 'conn_'
FLOW_ID_PREFIX = 'flow_'
TEMPLATE_ID_PREFIX = 'template_'

# --- Validation ---
OUTPUT_CATEGORY = 'Output'

# --- Connection Suggestions ---
# Which block categories may feed which. Categories missing here accept nothing.
CATEGORY_COMPATIBILITY = {
    'Input': ('Processing', 'Logic', 'Storage'),
    'Processing': ('Logic', 'Output', 'Storage', 'Testing'),
    'Logic': ('Processing', 'Output', 'Logic'),
    'Storage': ('Processing', 'Output'),
    'Output': (),
    'Integration': ('Processing', 'Storage'),
    'Testing': ('Output', 'Storage'),
}

# --- Properties Panel ---
PROPERTY_INT_LIMIT = 2147483647
PROPERTY_FLOAT_LIMIT = 1e12
PROPERTY_FLOAT_DECIMALS = 3

# --- Main Window ---
MAIN_WINDOW_DEFAULT_X = 100
MAIN_WINDOW_DEFAULT_Y = 100
MAIN_WINDOW_DEFAULT_WIDTH = 1400
MAIN_WINDOW_DEFAULT_HEIGHT = 900
STATUS_BAR_TIMEOUT_MS = 4000
PALETTE_MIME_TYPE = 'application/x-flowbuilder-block'
SHORTCUT_OPEN_EDITOR = 'Ctrl+Shift+F'

class Key:
    """Symbolic constants for dictionary keys used in serialized data."""
    ID = 'id'
    NAME = 'name'
    TIMESTAMP = 'timestamp'
    BLOCKS = 'blocks'
    CONNECTIONS = 'connections'
    TYPE = 'type'
    X = 'x'
    Y = 'y'
    WIDTH = 'width'
    HEIGHT = 'height'
    CONFIG = 'config'
    INPUTS = 'inputs'
    OUTPUTS = 'outputs'
    DATA_TYPE = 'type' # Port descriptor key, as in the registry format
    FROM = 'from'
    TO = 'to'
    BLOCK_ID = 'blockId'
    PORT_INDEX = 'portIndex'

class UI:
    """A container for all UI-related strings, organized by context."""
    MAIN_WINDOW_TITLE = "Flow Builder"
    ZOOM_LABEL = "Zoom: {percent}%"
    BLOCK_COUNT_LABEL = "Blocks: {count}"
    PROPERTIES_EMPTY = "Select a block to edit properties"
    PALETTE_TITLE = "Blocks"
    PROPERTIES_TITLE = "Properties"
    MINIMAP_TITLE = "Minimap"

    class Menu:
        """Strings used in toolbars and context menus."""
        TOOLBAR_ACTIONS = "Actions"
        NEW_FLOW = "New"
        SAVE_FLOW = "Save"
        LOAD_FLOW = "Load"
        RESTORE_AUTOSAVE = "Restore Autosave"
        UNDO = "Undo"
        REDO = "Redo"
        ZOOM_IN = "Zoom In"
        ZOOM_OUT = "Zoom Out"
        TOGGLE_GRID = "Grid"
        AUTO_ALIGN = "Auto-Align"
        QUICK_ADD = "Quick Add"
        TEST_FLOW = "Test"
        EXPORT_FLOW = "Export JSON"
        IMPORT_FLOW = "Import JSON"
        DELETE_BLOCK = "Delete Block"
        DISCONNECT_ALL = "Disconnect"
        EXECUTE_FLOW = "Execute"
        AUTO_CONNECT = "Auto-Connect"
        SAVE_TEMPLATE = "Save Template"
        LOAD_TEMPLATE = "Load Template"

    class Dialog:
        """Strings used in QInputDialog, QFileDialog and QMessageBox dialogs."""
        NEW_FLOW_TITLE = "New Flow"
        NEW_FLOW_CONFIRM = "Create new flow? Unsaved changes will be lost."
        SAVE_FLOW_TITLE = "Save Flow"
        SAVE_FLOW_LABEL = "Flow name:"
        LOAD_FLOW_TITLE = "Load Flow"
        LOAD_FLOW_LABEL = "Select a saved flow:"
        LOAD_FLOW_ITEM = "{name} ({id})"
        QUICK_ADD_TITLE = "Quick Add"
        QUICK_ADD_PLACEHOLDER = "Search blocks..."
        QUICK_ADD_ITEM = "{icon} {name}  ·  {category}"
        EXPORT_DIALOG_TITLE = "Export Flow"
        IMPORT_DIALOG_TITLE = "Import Flow"
        JSON_FILTER = "Flow JSON (*.json)"
        STORAGE_FAILED_TITLE = "Storage Failed"
        TEST_RESULT_TITLE = "Flow Validation"
        TEST_RESULT_CLEAN = "No problems found."
        TEST_RESULT_ERROR = "Error: {message}"
        TEST_RESULT_WARNING = "Warning: {message}"
        EXECUTE_RESULT_TITLE = "Execution Result"
        SAVE_TEMPLATE_TITLE = "Save Template"
        SAVE_TEMPLATE_LABEL = "Template name:"
        LOAD_TEMPLATE_TITLE = "Load Template"
        LOAD_TEMPLATE_LABEL = "Select a template:"

    class Notify:
        """Titles and messages passed to the notification collaborator."""
        CONNECTED_TITLE = "Connected"
        CONNECTED = "{source} → {destination}"
        CONNECTION_REJECTED_TITLE = "Connection Rejected"
        UNDO_TITLE = "Undo"
        UNDO = "Reverted to previous state"
        REDO_TITLE = "Redo"
        REDO = "Restored next state"
        SAVED_TITLE = "Saved"
        SAVED = "Flow \"{name}\" saved"
        LOADED_TITLE = "Loaded"
        LOADED = "Flow \"{name}\" loaded"
        AUTOSAVED = "Auto-saved"
        STORAGE_FAILED_TITLE = "Storage Failed"
        GRID_TITLE = "Grid"
        GRID_VISIBLE = "Visible"
        GRID_HIDDEN = "Hidden"
        ALIGNED_TITLE = "Auto-Aligned"
        ALIGNED = "Organized {count} blocks"
        TEST_TITLE = "Testing"
        TEST_PASSED = "Flow is valid ({warnings} warnings)"
        TEST_FAILED = "Flow has {errors} errors and {warnings} warnings"
        EXECUTE_TITLE = "Execute"
        EXECUTE_REFUSED = "Fix validation errors before executing"
        EXPORTED_TITLE = "Exported"
        EXPORTED = "Flow exported to {path}"
        IMPORTED_TITLE = "Imported"
        IMPORTED = "Flow imported from {path}"
        AUTO_CONNECTED_TITLE = "Auto-Connected"
        AUTO_CONNECTED = "Created {count} connections"
        TEMPLATE_SAVED_TITLE = "Template Saved"
        TEMPLATE_SAVED = "Template \"{name}\" saved"
        TEMPLATE_LOADED_TITLE = "Template Loaded"
        TEMPLATE_LOADED = "Template \"{name}\" loaded"

    class Validation:
        """Messages produced by the flow validator."""
        NO_INPUT_CONNECTION = "{name} has no input connection"
        NO_OUTPUT_CONNECTION = "{name} has no output connection"
        NOT_CONFIGURED = "{name}: \"{key}\" is not configured"
        CIRCULAR = "Circular dependency detected"

    class Log:
        """Strings used for logging messages to the console."""
        BLOCK_ADDED = "Added block '{name}' ({block_id}) at ({x}, {y})"
        BLOCK_MOVED = "Moved block '{block_id}' to ({x}, {y})."
        BLOCK_DELETED = "Deleted block '{block_id}' and {count} connections."
        BLOCK_NOT_FOUND = "Error: Could not find block '{block_id}'."
        UNKNOWN_BLOCK_TYPE = "Error: Unknown block type '{type_key}'."
        CONFIG_UPDATED = "Updated {block_id}.{key} = {value}"
        CONFIG_KEY_UNKNOWN = "Error: Block '{block_id}' has no config key '{key}'."
        WIRE_CONNECTED = "Connection {connection_id}: {source_desc} -> {dest_desc}"
        WIRE_CREATION_FAILED_PIN_TYPE = "Invalid connection: Must connect an output port to an input port."
        WIRE_CREATION_FAILED_NO_PORT = "Cannot connect: port {block_id}[{port_index}] does not exist."
        CONNECTION_EXISTS = "Connection already exists."
        CONNECTION_REMOVED = "Removed connection '{connection_id}'."
        CONNECTION_NOT_FOUND = "Error: Could not find connection '{connection_id}'."
        NO_VALID_PORT = "No valid port to connect to."
        HISTORY_COMMITTED = "History snapshot {index}/{length} committed."
        UNDO_UNAVAILABLE = "Nothing to undo."
        REDO_UNAVAILABLE = "Nothing to redo."
        GESTURE_CANCELLED = "Gesture cancelled."
        FLOW_SAVED = "Saved flow '{name}' ({flow_id}) with {blocks} blocks."
        FLOW_LOADED = "Loaded flow '{name}' ({flow_id})."
        FLOW_NOT_FOUND = "Error: Could not find saved flow '{flow_id}'."
        FLOW_DELETED = "Deleted saved flow '{flow_id}'."
        AUTOSAVED = "Autosaved {blocks} blocks."
        AUTOSAVE_SKIPPED = "Autosave skipped: graph is empty."
        STORAGE_FAILED = "Storage failure: {error}"
        STORAGE_CORRUPT = "Ignoring unreadable data under '{key}': {error}"
        STORAGE_UNREADABLE = "Refusing to overwrite unreadable data under '{key}': {error}"
        TEMPLATE_SAVED = "Saved template '{name}' ({template_id}) with {blocks} blocks."
        TEMPLATE_NOT_FOUND = "Error: Could not find template '{template_id}'."
        AUTO_CONNECTED = "Auto-connected {count} block pairs."
        NEW_FLOW = "Started a new flow."
        ALIGNED = "Auto-aligned {count} blocks into {columns} columns."
        VALIDATION_RESULT = "Validation: {errors} errors, {warnings} warnings."
        EXECUTION_HANDOFF = "Handing flow with {blocks} blocks to executor."
        EXPORT_SUCCESS = "Flow successfully exported to {file_path}"
        IMPORT_SUCCESS = "Flow imported from {file_path}"
        RECORD_MALFORMED = "Malformed flow record: {error}"

        # Generic Error Messages
        QAPP_INSTANCE_REQUIRED = "A QApplication instance must be created before calling start()."
