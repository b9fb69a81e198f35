# -*- coding: utf-8 -*-
"""
Qt5 front-end for the math-expression diagram editor.

The diagram model and gesture handling live in `graph.py` and
`controller.py`; this module only translates Qt input into canvas
coordinates and paints the `RenderFrame` the controller hands back.

This module provides the following classes:
- `DiagramCanvas`: A QWidget that paints the grid and diagram and forwards mouse and key events.
- `PaletteButton`: A toolbar button that drags a new block onto the canvas.
- `MainWindow`: A QMainWindow hosting the palette, the canvas and the file actions.
"""

from typing import Callable, Dict, List, Optional

from PyQt5.QtWidgets import (
    QApplication, QAction, QFileDialog, QInputDialog, QMainWindow, QMessageBox, QScrollArea,
    QStatusBar, QToolButton, QWidget
)
from PyQt5.QtCore import Qt, QLineF, QPointF, QRectF
from PyQt5.QtGui import (
    QBrush, QCloseEvent, QColor, QFont, QFontMetricsF, QKeyEvent, QMouseEvent, QPainter, QPaintEvent, QPen,
    QPolygonF
)

import mathdiagrams.conf as conf
from mathdiagrams.controller import GestureState, InteractionController, RenderFrame
from mathdiagrams.graph import DiagramError, DiagramGraph
from mathdiagrams.model import Block, BlockType, Connection
from mathdiagrams.serializer import DiagramSerializer

class DiagramCanvas(QWidget):
    """
    A fixed-size drawing surface for the diagram.

    Mouse events are forwarded to the controller in widget coordinates, which
    are the canvas coordinates since the canvas is never zoomed. After each
    event the widget repaints from the controller's `RenderFrame`.

    Attributes:
        controller (InteractionController): The gesture state machine.
        on_change (callable): Called after every event that may have changed the graph.
    """
    def __init__(self, controller: InteractionController, parent: Optional[QWidget] = None) -> None:
        """
        Initializes the DiagramCanvas.

        Args:
            controller (InteractionController): The controller to drive.
            parent (Optional[QWidget]): The parent widget. Defaults to None.
        """
        super().__init__(parent)
        self.controller = controller
        self.on_change: Callable[[], None] = lambda: None
        self.setFixedSize(conf.CANVAS_WIDTH, conf.CANVAS_HEIGHT)
        self.setMouseTracking(True) # Needed for the connection preview
        self.setFocusPolicy(Qt.StrongFocus)

        self.symbol_font = QFont()
        self.symbol_font.setPointSize(conf.FONT_SIZE_SYMBOL)
        self.symbol_font.setWeight(conf.FONT_WEIGHT_SYMBOL)
        self.number_font = QFont()
        self.number_font.setPointSize(conf.FONT_SIZE_BLOCK_NUMBER)
        self.label_font = QFont()
        self.label_font.setPointSize(conf.FONT_SIZE_LABEL)
        self._label_metrics = QFontMetricsF(self.label_font)
        controller.text_width_func = self.label_text_width

    def label_text_width(self, text: str) -> float:
        """Measures a label with the font it is painted in."""
        return self._label_metrics.horizontalAdvance(text)

    # --- Input ---

    def _notify(self) -> None:
        self.update()
        self.on_change()

    def mousePressEvent(self, event: QMouseEvent) -> None:
        if event.button() != Qt.LeftButton:
            super().mousePressEvent(event)
            return
        self.setFocus()
        self.controller.pointer_down(event.localPos().x(), event.localPos().y())
        self._update_cursor()
        self._notify()

    def mouseMoveEvent(self, event: QMouseEvent) -> None:
        self.controller.pointer_move(event.localPos().x(), event.localPos().y())
        if self.controller.state != GestureState.IDLE:
            self.update()

    def mouseReleaseEvent(self, event: QMouseEvent) -> None:
        if event.button() != Qt.LeftButton:
            super().mouseReleaseEvent(event)
            return
        self.controller.pointer_up(event.localPos().x(), event.localPos().y())
        self._update_cursor()
        self._notify()

    def keyPressEvent(self, event: QKeyEvent) -> None:
        """
        Deletes the selection on Delete/Backspace and cancels a pending
        connection on Escape.
        """
        if event.key() in (Qt.Key_Delete, Qt.Key_Backspace):
            self.controller.delete_selected()
            self._notify()
        elif event.key() == Qt.Key_Escape:
            self.controller.cancel_connection()
            self._update_cursor()
            self._notify()
        else:
            super().keyPressEvent(event)

    def _update_cursor(self) -> None:
        cursors = {
            GestureState.MOVING_BLOCK: Qt.ClosedHandCursor,
            GestureState.DRAGGING_LABEL: Qt.SizeAllCursor,
            GestureState.DRAGGING_CONNECTION_SEGMENT: Qt.SizeHorCursor,
            GestureState.CREATING_CONNECTION: Qt.CrossCursor,
        }
        self.setCursor(cursors.get(self.controller.state, Qt.ArrowCursor))

    # --- Painting ---

    def paintEvent(self, event: QPaintEvent) -> None:
        painter = QPainter(self)
        painter.setRenderHint(QPainter.Antialiasing)
        self.render_frame(painter, self.controller.frame(), QRectF(self.rect()))
        painter.end()

    def render_frame(self, painter: QPainter, frame: RenderFrame, rect: QRectF) -> None:
        """
        Paints a complete frame.

        Args:
            painter (QPainter): The painter to use.
            frame (RenderFrame): What to draw.
            rect (QRectF): The area to fill with the grid.
        """
        self._draw_grid(painter, rect)
        for block in frame.blocks:
            self._draw_block(painter, block, label_dragging=block.id == frame.dragging_label_block_id)
        for connection in frame.connections:
            self._draw_connection(painter, connection)
        if frame.preview_block is not None:
            self._draw_block(painter, frame.preview_block)
        if frame.preview_path:
            pen = QPen(conf.CONNECTION_COLOR, conf.PEN_WIDTH_NORMAL, conf.PREVIEW_PEN_STYLE)
            painter.setPen(pen)
            painter.drawPolyline(QPolygonF(frame.preview_path))

    def _draw_grid(self, painter: QPainter, rect: QRectF) -> None:
        painter.fillRect(rect, conf.CANVAS_BACKGROUND_COLOR)
        lines = []
        for x in range(0, int(rect.right()) + 1, conf.GRID_SIZE):
            lines.append(QLineF(x, rect.top(), x, rect.bottom()))
        for y in range(0, int(rect.bottom()) + 1, conf.GRID_SIZE):
            lines.append(QLineF(rect.left(), y, rect.right(), y))
        painter.setPen(QPen(conf.GRID_COLOR_LIGHT, conf.PEN_WIDTH_GRID))
        painter.drawLines(lines)

    def _draw_block(self, painter: QPainter, block: Block, label_dragging: bool = False) -> None:
        rect = block.rect()
        if block.selected:
            painter.setPen(QPen(conf.BLOCK_HIGHLIGHT_COLOR, conf.PEN_WIDTH_HIGHLIGHT))
        else:
            painter.setPen(QPen(conf.BLOCK_BORDER_COLOR, conf.PEN_WIDTH_NORMAL))
        painter.setBrush(QBrush(QColor(block.color)))
        painter.drawRect(rect)

        painter.setPen(QPen(conf.BLOCK_TEXT_COLOR))
        painter.setFont(self.symbol_font)
        painter.drawText(rect, Qt.AlignCenter, block.symbol)
        if block.block_number is not None:
            painter.setFont(self.number_font)
            number_rect = rect.adjusted(conf.BLOCK_NUMBER_MARGIN, conf.BLOCK_NUMBER_MARGIN, 0, 0)
            painter.drawText(number_rect, Qt.AlignLeft | Qt.AlignTop, str(block.block_number))

        painter.setPen(QPen(conf.CONNECTOR_BORDER_COLOR, conf.PEN_WIDTH_CONNECTOR))
        painter.setBrush(QBrush(conf.CONNECTOR_FILL_COLOR))
        for connector in [block.output_connector] + block.input_connectors:
            painter.drawEllipse(connector.pos(), connector.radius, connector.radius)

        # Dotted leader from the output to the label, then the label itself.
        label = block.label
        painter.setPen(QPen(conf.CONNECTOR_BORDER_COLOR, conf.PEN_WIDTH_CONNECTOR, conf.LABEL_LEADER_PEN_STYLE))
        painter.drawLine(block.output_connector.pos(), QPointF(label.x - conf.LABEL_HIT_PADDING, label.y))
        painter.setPen(QPen(conf.LABEL_DRAG_COLOR if label_dragging else conf.LABEL_TEXT_COLOR))
        painter.setFont(self.label_font)
        painter.drawText(label.pos(), label.text)

    def _draw_connection(self, painter: QPainter, connection: Connection) -> None:
        if connection.selected:
            painter.setPen(QPen(conf.CONNECTION_HIGHLIGHT_COLOR, conf.PEN_WIDTH_NORMAL))
        else:
            painter.setPen(QPen(conf.CONNECTION_COLOR, conf.PEN_WIDTH_NORMAL))
        painter.drawPolyline(QPolygonF(connection.polyline()))

class PaletteButton(QToolButton):
    """
    A palette entry that places a block by dragging it onto the canvas.

    Qt keeps delivering move and release events to the button that received
    the press, so the whole drag is handled here and mapped into canvas
    coordinates before being passed to the controller.
    """
    def __init__(self, block_type: BlockType, canvas: DiagramCanvas, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.block_type = block_type
        self.canvas = canvas
        self.setText(block_type.symbol)
        self.setToolTip(block_type.value)
        self.setFixedSize(conf.PALETTE_BUTTON_SIZE, conf.PALETTE_BUTTON_SIZE)
        self.setStyleSheet(f"background-color: {block_type.color};")

    def _canvas_pos(self, event: QMouseEvent) -> QPointF:
        return QPointF(self.canvas.mapFromGlobal(event.globalPos()))

    def mousePressEvent(self, event: QMouseEvent) -> None:
        if event.button() == Qt.LeftButton:
            pos = self._canvas_pos(event)
            self.canvas.controller.begin_palette_drag(self.block_type, pos.x(), pos.y())
            self.canvas.update()
            event.accept()
            return
        super().mousePressEvent(event)

    def mouseMoveEvent(self, event: QMouseEvent) -> None:
        if self.canvas.controller.state == GestureState.PLACING_FROM_PALETTE:
            pos = self._canvas_pos(event)
            self.canvas.controller.pointer_move(pos.x(), pos.y())
            self.canvas.update()
            event.accept()
            return
        super().mouseMoveEvent(event)

    def mouseReleaseEvent(self, event: QMouseEvent) -> None:
        if event.button() == Qt.LeftButton and self.canvas.controller.state == GestureState.PLACING_FROM_PALETTE:
            pos = self._canvas_pos(event)
            self.canvas.controller.pointer_up(pos.x(), pos.y())
            self.canvas._notify()
            event.accept()
            return
        super().mouseReleaseEvent(event)

class MainWindow(QMainWindow):
    """
    The main application window for the diagram editor.
    Provides the block palette, the canvas and the file actions.
    """
    def __init__(self, enable_logging: bool = True) -> None:
        """
        Initializes the MainWindow.

        Args:
            enable_logging (bool, optional): If True, enables printing log messages
                to the console. Defaults to True.
        """
        super().__init__()
        self.setWindowTitle(conf.UI.MAIN_WINDOW_TITLE)
        self.setGeometry(conf.MAIN_WINDOW_DEFAULT_X, conf.MAIN_WINDOW_DEFAULT_Y, conf.MAIN_WINDOW_DEFAULT_WIDTH, conf.MAIN_WINDOW_DEFAULT_HEIGHT)

        self.log_enabled = enable_logging
        self.status_bar = QStatusBar()
        self.setStatusBar(self.status_bar)
        self.serializer = DiagramSerializer(log_func=self.log_message)
        self.controller = InteractionController(DiagramGraph(log_func=self.log_message), log_func=self.log_message)

        self.canvas = DiagramCanvas(self.controller, self)
        self.canvas.on_change = self.update_button_states
        scroll_area = QScrollArea(self)
        scroll_area.setWidget(self.canvas)
        self.setCentralWidget(scroll_area)

        self.toolbar_actions: Dict[str, QAction] = {}
        self.palette_buttons: List[PaletteButton] = []
        self._create_toolbars()

        self.update_button_states()

    @property
    def graph(self) -> DiagramGraph:
        return self.controller.graph

    def log_message(self, message: str) -> None:
        """
        Prints a message to the console if logging is enabled.
        The message is also shown in the status bar.

        Args:
            message (str): The message to log.
        """
        if self.log_enabled:
            print(message)
        self.show_status_message(message, conf.STATUS_BAR_TIMEOUT_MS)

    def show_status_message(self, message: str, timeout: int = 0) -> None:
        """Shows a message in the status bar for a specified duration."""
        self.status_bar.showMessage(message, timeout)

    def _create_toolbars(self) -> None:
        """Creates the action toolbar and the block palette."""
        toolbar = self.addToolBar(conf.UI.Menu.TOOLBAR_ACTIONS)
        toolbar.setMovable(False)
        for name, handler in ((conf.UI.Menu.SAVE, self.save_to_file),
                              (conf.UI.Menu.LOAD, self.load_from_file),
                              (conf.UI.Menu.DELETE_SELECTED, self.delete_selected),
                              (conf.UI.Menu.CLEAR, self.clear_all),
                              (conf.UI.Menu.EDIT_EXPRESSION, self.edit_expression)):
            action = toolbar.addAction(name)
            action.triggered.connect(handler)
            self.toolbar_actions[name] = action

        palette = self.addToolBar(conf.UI.Menu.TOOLBAR_PALETTE)
        palette.setMovable(False)
        for block_type in BlockType:
            button = PaletteButton(block_type, self.canvas, palette)
            palette.addWidget(button)
            self.palette_buttons.append(button)

    def update_button_states(self) -> None:
        """
        Enables the actions that make sense for the current content.

        An empty diagram can only be loaded into; a non-empty one can be
        saved, edited and cleared but not loaded over.
        """
        has_content = self.graph.has_content
        for name in (conf.UI.Menu.SAVE, conf.UI.Menu.DELETE_SELECTED, conf.UI.Menu.CLEAR,
                     conf.UI.Menu.EDIT_EXPRESSION):
            self.toolbar_actions[name].setEnabled(has_content)
        self.toolbar_actions[conf.UI.Menu.LOAD].setEnabled(not has_content)

    def _refresh(self) -> None:
        self.canvas.update()
        self.update_button_states()

    # --- Actions ---

    def delete_selected(self) -> None:
        self.controller.delete_selected()
        self._refresh()

    def clear_all(self) -> None:
        self.controller.clear_all()
        self._refresh()

    def edit_expression(self) -> None:
        """Prompts for a new expression for the selected block."""
        block = self.controller.selected_block
        if block is None:
            self.log_message(conf.UI.Log.NOTHING_SELECTED)
            return
        text, ok = QInputDialog.getText(self, conf.UI.Dialog.EDIT_EXPRESSION_TITLE,
                                        conf.UI.Dialog.EDIT_EXPRESSION_LABEL.format(block_number=block.block_number),
                                        text=block.label.text)
        if ok:
            self.controller.set_selected_expression(text)
            self._refresh()

    def save_diagram(self, file_path: str) -> bool:
        """
        Writes the diagram to a file, reporting failures in a message box.

        Returns:
            bool: True on success.
        """
        try:
            self.serializer.save(self.graph, file_path)
        except OSError as e:
            QMessageBox.warning(self, conf.UI.Dialog.SAVE_FAILED_TITLE, str(e))
            return False
        return True

    def load_diagram(self, file_path: str) -> bool:
        """
        Replaces the diagram with the contents of a file.

        The current diagram is kept if the file cannot be read or is invalid.

        Returns:
            bool: True on success.
        """
        try:
            graph = self.serializer.load(file_path)
        except (DiagramError, OSError) as e:
            self.log_message(conf.UI.Dialog.LOAD_FAILED_MSG.format(error=e))
            QMessageBox.warning(self, conf.UI.Dialog.LOAD_FAILED_TITLE, conf.UI.Dialog.LOAD_FAILED_MSG.format(error=e))
            return False
        self.controller.load_graph(graph)
        self._refresh()
        return True

    def save_to_file(self) -> None:
        """Opens a file dialog and saves the diagram as JSON."""
        file_path, _ = QFileDialog.getSaveFileName(self, conf.UI.Dialog.SAVE_DIALOG_TITLE,
                                                   conf.UI.Dialog.DEFAULT_FILE_NAME, conf.UI.Dialog.JSON_FILTER)
        if not file_path:
            return
        if not file_path.lower().endswith('.json'):
            file_path += '.json'
        self.save_diagram(file_path)

    def load_from_file(self) -> None:
        """Opens a file dialog and loads a JSON diagram."""
        file_path, _ = QFileDialog.getOpenFileName(self, conf.UI.Dialog.LOAD_DIALOG_TITLE, "",
                                                   conf.UI.Dialog.JSON_FILTER)
        if file_path:
            self.load_diagram(file_path)

    def closeEvent(self, event: QCloseEvent) -> None:
        self.controller.cancel_connection()
        event.accept()

    def start(self) -> int:
        """
        Shows the window and starts the Qt application event loop.

        This method requires that a QApplication instance has already been
        created.

        Returns:
            int: The exit status from the application.
        """
        app = QApplication.instance()
        if not app:
            raise RuntimeError(conf.UI.Log.QAPP_INSTANCE_REQUIRED)

        self.show()
        return app.exec_()
