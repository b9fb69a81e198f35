# -*- coding: utf-8 -*-
"""
A demonstration script for the math diagram editor.

This script creates an instance of the MainWindow, populates it with
a small expression (a + b) = c built through the programmatic API, and
runs the Qt application.
"""

import sys
from PyQt5.QtCore import QPointF
from PyQt5.QtWidgets import QApplication
from mathdiagrams import conf
from mathdiagrams.engine import MainWindow
from mathdiagrams.model import BlockType

def cell(column: int, row: int) -> QPointF:
    """Returns the top-left corner of a grid cell."""
    return QPointF(column * conf.GRID_SIZE, row * conf.GRID_SIZE)

def setup_demo_diagram(main_window: MainWindow) -> None:
    """
    Populates the main window with a demo diagram.

    This function uses the graph API directly, so every block and connection
    goes through the same checks as an interactive edit.
    """
    graph = main_window.graph
    given_a = graph.place_block(BlockType.GIVEN, cell(2, 2))
    given_b = graph.place_block(BlockType.GIVEN, cell(2, 6))
    addition = graph.place_block(BlockType.ADDITION, cell(7, 4))
    given_c = graph.place_block(BlockType.GIVEN, cell(7, 9))
    equals = graph.place_block(BlockType.EQUALS, cell(12, 6))

    graph.set_expression(given_a, "a")
    graph.set_expression(given_b, "b")
    graph.set_expression(addition, "a + b")
    graph.set_expression(given_c, "c")
    graph.set_expression(equals, "a + b = c")

    graph.connect(given_a, addition, 0)
    graph.connect(given_b, addition, 1)
    graph.connect(addition, equals, 0)
    graph.connect(given_c, equals, 1)

    main_window.update_button_states()

if __name__ == "__main__":
    # A QApplication instance must be created before any QWidget.
    app = QApplication(sys.argv)

    main_window = MainWindow(enable_logging=True)
    setup_demo_diagram(main_window)

    sys.exit(main_window.start())
