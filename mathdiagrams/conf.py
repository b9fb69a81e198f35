# -*- coding: utf-8 -*-
"""
Configuration file for the math-expression diagram editor.

This file contains all the constants used throughout the application,
including grid and canvas dimensions, hit-test tolerances, the block type
table, colors, and UI strings.
"""

from PyQt5.QtGui import QColor, QFont
from PyQt5.QtCore import Qt

# --- Version ---
__version__ = '0.1.0'

# --- Grid & Canvas ---
GRID_SIZE = 40
CANVAS_WIDTH = 1200
CANVAS_HEIGHT = 840

# --- Block Geometry ---
BLOCK_WIDTH = GRID_SIZE # Blocks occupy exactly one grid cell
BLOCK_HEIGHT = GRID_SIZE
FIRST_BLOCK_NUMBER = 1

# --- Connectors ---
CONNECTOR_RADIUS = 5
CONNECTOR_HIT_RADIUS = 8 # Wider than the visual radius for easier clicking
TWO_INPUT_EDGE_OFFSET = 12 # Distance of the two input connectors from the top/bottom edge

# --- Connections ---
CONNECTION_HIT_TOLERANCE = 8 # Perpendicular distance for selecting a connection
VERTICAL_SEGMENT_GRAB_TOLERANCE = 5 # Perpendicular distance for dragging the vertical segment

# --- Expression Labels ---
DEFAULT_EXPRESSION = "Math Expression"
LABEL_OFFSET_X = 65 # From the block's right edge to the label anchor
LABEL_OFFSET_Y = 30 # From the block's bottom edge to the label anchor
LABEL_HIT_PADDING = 5
LABEL_HIT_HEIGHT = 20
LABEL_APPROX_CHAR_WIDTH = 7.0 # Used when no font metrics are available

# --- Block Types ---
# type value -> (symbol, color, number of inputs)
BLOCK_TYPES = {
    'addition':       ('+',  '#FF5733', 2),
    'subtraction':    ('−',  '#33FF57', 2),
    'multiplication': ('×',  '#3357FF', 2),
    'division':       ('÷',  '#F3FF33', 2),
    'equals':         ('=',  '#FF33F3', 2),
    'square-root':    ('√',  '#33FFF3', 1),
    'square':         ('x²', '#8033FF', 1),
    'substitute':     ('↧',  '#FF8033', 2),
    'given':          ('⇰',  '#33B5FF', 0),
}

# --- General Visuals ---
PEN_WIDTH_GRID = 1
PEN_WIDTH_NORMAL = 2
PEN_WIDTH_HIGHLIGHT = 3
PEN_WIDTH_CONNECTOR = 1

GRID_COLOR_LIGHT = QColor(204, 204, 204)
CANVAS_BACKGROUND_COLOR = QColor(255, 255, 255)

# Block Colors
BLOCK_BORDER_COLOR = QColor(102, 102, 102)
BLOCK_HIGHLIGHT_COLOR = QColor(255, 0, 0)
BLOCK_TEXT_COLOR = QColor(0, 0, 0)
BLOCK_NUMBER_MARGIN = 5

# Connector Colors
CONNECTOR_FILL_COLOR = QColor(255, 255, 255)
CONNECTOR_BORDER_COLOR = QColor(102, 102, 102)

# Connection Colors
CONNECTION_COLOR = QColor(102, 102, 102)
CONNECTION_HIGHLIGHT_COLOR = QColor(255, 0, 0)
PREVIEW_PEN_STYLE = Qt.DashLine

# Label Colors
LABEL_TEXT_COLOR = QColor(0, 0, 0)
LABEL_DRAG_COLOR = QColor(255, 0, 0)
LABEL_LEADER_PEN_STYLE = Qt.DotLine

# --- Fonts ---
FONT_SIZE_SYMBOL = 18
FONT_SIZE_BLOCK_NUMBER = 8
FONT_SIZE_LABEL = 10
FONT_WEIGHT_SYMBOL = QFont.Normal

# --- Main Window ---
MAIN_WINDOW_DEFAULT_X = 100
MAIN_WINDOW_DEFAULT_Y = 100
MAIN_WINDOW_DEFAULT_WIDTH = 1400
MAIN_WINDOW_DEFAULT_HEIGHT = 960
STATUS_BAR_TIMEOUT_MS = 5000
PALETTE_BUTTON_SIZE = 48

class Key:
    """Symbolic constants for dictionary keys used in saved documents."""
    FORMAT_VERSION_KEY = "formatVersion"
    BLOCKS_KEY = "blocks"
    CONNECTIONS_KEY = "connections"
    BLOCK_COUNTER_KEY = "blockCounter"
    # Block entries
    X_KEY = "x"
    Y_KEY = "y"
    WIDTH_KEY = "width"
    HEIGHT_KEY = "height"
    TYPE_KEY = "type"
    SYMBOL_KEY = "symbol"
    INPUTS_KEY = "inputs"
    COLOR_KEY = "color"
    BLOCK_NUMBER_KEY = "blockNumber"
    EXPRESSION_KEY = "expression"
    LABEL_X_KEY = "labelX"
    LABEL_Y_KEY = "labelY"
    # Connection entries
    SOURCE_BLOCK_INDEX_KEY = "sourceBlockIndex"
    TARGET_BLOCK_INDEX_KEY = "targetBlockIndex"
    INPUT_INDEX_KEY = "inputIndex"
    VERTICAL_X_KEY = "verticalX"

class UI:
    """A container for all UI-related strings, organized by context."""
    MAIN_WINDOW_TITLE = "Math Diagram Editor"

    class Menu:
        """Strings used in toolbars."""
        TOOLBAR_ACTIONS = "Actions"
        TOOLBAR_PALETTE = "Blocks"
        SAVE = "Save"
        LOAD = "Load"
        DELETE_SELECTED = "Delete Selected"
        CLEAR = "Clear"
        EDIT_EXPRESSION = "Edit Expression"

    CONNECTOR_ROLE_INPUT = "Input"
    CONNECTOR_ROLE_OUTPUT = "Output"

    class Dialog:
        """Strings used in QInputDialog, QFileDialog and QMessageBox dialogs."""
        SAVE_DIALOG_TITLE = "Save Diagram"
        LOAD_DIALOG_TITLE = "Load Diagram"
        JSON_FILTER = "Diagram files (*.json)"
        DEFAULT_FILE_NAME = "diagram_save.json"
        LOAD_FAILED_TITLE = "Load Failed"
        LOAD_FAILED_MSG = "Invalid save file format: {error}"
        SAVE_FAILED_TITLE = "Save Failed"
        EDIT_EXPRESSION_TITLE = "Edit Expression"
        EDIT_EXPRESSION_LABEL = "Expression for block {block_number}:"

    class Serializer:
        """Strings and constants for the DiagramSerializer."""
        FORMAT_VERSION = "1.0"
        JSON_INDENT = 2

    class Log:
        """Strings used for logging messages to the console."""
        BLOCK_PLACED = "Placed {block_type} block #{block_number} at ({x}, {y})"
        BLOCK_MOVED = "Moved block #{block_number} to ({x}, {y})"
        BLOCK_REMOVED = "Removed block #{block_number} and {count} connection(s)"
        BLOCK_EXPRESSION_SET = "Block #{block_number} expression set to '{expression}'"
        CONNECTED = "Connected block #{source_number} to input {slot} of block #{target_number}"
        DISCONNECTED = "Disconnected block #{source_number} from input {slot} of block #{target_number}"
        DIAGRAM_CLEARED = "Diagram cleared."
        CONNECTION_DECLINED = "Connection declined: {reason}"
        CONNECTION_STARTED = "Connecting from block #{block_number}; click an input to finish."
        CONNECTION_CANCELLED = "Pending connection cancelled."
        PLACEMENT_DISCARDED = "Drop outside the canvas; block discarded."
        NOTHING_SELECTED = "Nothing selected."
        DIAGRAM_LOADED = "Loaded {blocks} block(s) and {connections} connection(s)."
        DIAGRAM_SAVED = "Diagram saved to {file_path}"

        # Error messages
        CONNECTOR_OCCUPIED = "{role} connector {slot} of block #{block_number} is already occupied."
        SELF_LOOP = "Block #{block_number} cannot be connected to itself."
        UNKNOWN_BLOCK = "No block with id {block_id}."
        UNKNOWN_CONNECTION = "No connection with id {connection_id}."
        UNKNOWN_SLOT = "Block #{block_number} has no input {slot}."
        QAPP_INSTANCE_REQUIRED = "A QApplication instance must be created before calling start()."
        DOCUMENT_NOT_OBJECT = "Document root must be an object."
        DOCUMENT_MISSING_KEY = "Document is missing '{key}'."
        DOCUMENT_NOT_LIST = "'{key}' must be a list."
        DOCUMENT_BAD_ENTRY = "Invalid {kind} entry at index {index}: {error}"
        DOCUMENT_NOT_JSON = "Document is not valid JSON: {error}"
        INDEX_OUT_OF_RANGE = "Connection {index} references block index {block_index}, but there are {count} block(s)."
        NOT_AN_INTEGER = "{value!r} is not an integer."
        OFF_GRID = "{value!r} is not a multiple of the grid size {grid_size}."
        DUPLICATE_BLOCK_NUMBER = "Block number {block_number} is used more than once."
        BLOCK_COUNTER_TOO_LOW = "blockCounter {block_counter} must be greater than every block number (highest is {highest})."
