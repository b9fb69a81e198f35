# -*- coding: utf-8 -*-
"""
Pointer gesture state machine for the diagram editor.

`InteractionController` receives pointer events in canvas coordinates and
turns them into `DiagramGraph` mutations. All gesture state lives on the
controller instance; there are no global listeners. After each event the
renderer can ask for a `RenderFrame` describing what to draw.

Pointer-down is resolved against the current geometry in a fixed order, the
first match winning:

1. the selected block's label           -> drag the label
2. a connection's vertical segment      -> drag the segment
3. a connector                          -> start / finish / cancel a connection
4. any other part of a connection       -> select it
5. a block                              -> select and move it
6. empty canvas                         -> clear the selection

A connection is made with two clicks (output, then input). Between the two
clicks it stays armed across any number of moves and other gestures.
"""

from enum import Enum
from typing import Callable, List, Optional

from PyQt5.QtCore import QPointF, QRectF

import mathdiagrams.conf as conf
from mathdiagrams.graph import DiagramError, DiagramGraph
from mathdiagrams.model import (Block, BlockType, Connection, approximate_text_width, orthogonal_polyline,
                                snap_to_grid)

class GestureState(Enum):
    """The gesture currently driven by the pointer."""
    IDLE = 0
    PLACING_FROM_PALETTE = 1
    MOVING_BLOCK = 2
    DRAGGING_LABEL = 3
    CREATING_CONNECTION = 4
    DRAGGING_CONNECTION_SEGMENT = 5

class RenderFrame:
    """
    Everything the renderer needs to draw one frame.

    The renderer must treat these objects as read-only.

    Attributes:
        blocks (list[Block]): All blocks, with connectors and selection flags.
        connections (list[Connection]): All connections.
        preview_path (list[QPointF] or None): The polyline of a pending connection.
        preview_block (Block or None): The floating block of a palette drag.
        dragging_label_block_id (int or None): The block whose label is being dragged.
    """
    def __init__(self,
                 blocks: List[Block],
                 connections: List[Connection],
                 preview_path: Optional[List[QPointF]] = None,
                 preview_block: Optional[Block] = None,
                 dragging_label_block_id: Optional[int] = None
                 ) -> None:
        self.blocks = blocks
        self.connections = connections
        self.preview_path = preview_path
        self.preview_block = preview_block
        self.dragging_label_block_id = dragging_label_block_id

class InteractionController:
    """
    Translates pointer gestures into graph mutations.

    Attributes:
        graph (DiagramGraph): The diagram being edited.
        state (GestureState): The active gesture.
        canvas_rect (QRectF): Drops outside this rectangle are discarded.
        text_width_func (callable): Measures label text for hit testing.
        log_func (callable): A function for logging messages.
    """
    def __init__(self,
                 graph: Optional[DiagramGraph] = None,
                 canvas_rect: Optional[QRectF] = None,
                 text_width_func: Optional[Callable[[str], float]] = None,
                 log_func: Optional[Callable[[str], None]] = None
                 ) -> None:
        """
        Initializes the controller.

        Args:
            graph (DiagramGraph, optional): The graph to edit. A new empty graph
                is created if omitted.
            canvas_rect (QRectF, optional): The canvas bounds. Defaults to the
                configured canvas size at the origin.
            text_width_func (Callable[[str], float], optional): Returns the
                rendered width of a label. Defaults to a per-character estimate.
            log_func (Callable[[str], None], optional): A function for logging.
                Defaults to print.
        """
        self.log_func = log_func if log_func else print
        self.graph = graph if graph is not None else DiagramGraph(log_func=self.log_func)
        self.canvas_rect = canvas_rect if canvas_rect is not None else QRectF(0, 0, conf.CANVAS_WIDTH, conf.CANVAS_HEIGHT)
        self.text_width_func = text_width_func if text_width_func else approximate_text_width
        self.state = GestureState.IDLE
        self._reset_gesture()
        self._pending_source_id: Optional[int] = None
        self._pointer = QPointF()

    def _reset_gesture(self) -> None:
        """Clears the per-drag bookkeeping."""
        self._active_block_id: Optional[int] = None
        self._active_connection_id: Optional[int] = None
        self._grab_offset = QPointF()
        self._segment_offset = 0.0
        self._preview_block: Optional[Block] = None

    # --- Selection ---

    @property
    def selected_block(self) -> Optional[Block]:
        return next((block for block in self.graph.blocks if block.selected), None)

    @property
    def selected_connection(self) -> Optional[Connection]:
        return next((connection for connection in self.graph.connections if connection.selected), None)

    def clear_selection(self) -> None:
        for block in self.graph.blocks:
            block.selected = False
        for connection in self.graph.connections:
            connection.selected = False

    def select_block(self, block_id: int) -> None:
        """Selects a single block, clearing any other selection."""
        self.clear_selection()
        self.graph.block(block_id).selected = True

    def select_connection(self, connection_id: int) -> None:
        """Selects a single connection, clearing any other selection."""
        self.clear_selection()
        self.graph.connection(connection_id).selected = True

    # --- Pending connection ---

    @property
    def is_creating_connection(self) -> bool:
        return self._pending_source_id is not None

    @property
    def pending_source_id(self) -> Optional[int]:
        return self._pending_source_id

    def cancel_connection(self) -> None:
        """Disarms a pending connection without creating anything."""
        if self._pending_source_id is None:
            return
        self._pending_source_id = None
        if self.state == GestureState.CREATING_CONNECTION:
            self.state = GestureState.IDLE
        self.log_func(conf.UI.Log.CONNECTION_CANCELLED)

    def _resting_state(self) -> GestureState:
        """The state to return to once a drag ends."""
        return GestureState.CREATING_CONNECTION if self.is_creating_connection else GestureState.IDLE

    # --- Pointer events ---

    def pointer_down(self, x: float, y: float) -> GestureState:
        """
        Resolves a pointer press against the current geometry.

        Args:
            x (float): Canvas x-coordinate.
            y (float): Canvas y-coordinate.

        Returns:
            GestureState: The state after handling the press.
        """
        self._pointer = QPointF(x, y)

        # 1. Label of the selected block
        selected = self.selected_block
        if selected is not None and selected.is_over_label(x, y, self.text_width_func):
            self._active_block_id = selected.id
            self._grab_offset = QPointF(x - selected.label.x, y - selected.label.y)
            self.state = GestureState.DRAGGING_LABEL
            return self.state

        # 2. Vertical segment of a connection
        connection_hit = self.graph.hit_test_connection_segment(x, y)
        if connection_hit is not None and connection_hit[1]:
            connection = self.graph.connection(connection_hit[0])
            self.select_connection(connection.id)
            self._active_connection_id = connection.id
            self._segment_offset = x - connection.vertical_x
            self.state = GestureState.DRAGGING_CONNECTION_SEGMENT
            return self.state

        # 3. Connectors
        connector_hit = self.graph.hit_test_connector(x, y)
        if connector_hit is not None:
            self._handle_connector_click(*connector_hit)
            return self.state

        # 4. Anywhere else on a connection
        if connection_hit is not None:
            self.select_connection(connection_hit[0])
            self.state = self._resting_state()
            return self.state

        # 5. Block body
        block_id = self.graph.hit_test_block(x, y)
        if block_id is not None:
            block = self.graph.block(block_id)
            self.select_block(block_id)
            self._active_block_id = block_id
            self._grab_offset = QPointF(x - block.x, y - block.y)
            self.state = GestureState.MOVING_BLOCK
            return self.state

        # 6. Empty canvas
        self.clear_selection()
        self.state = self._resting_state()
        return self.state

    def _handle_connector_click(self, block_id: int, slot: int) -> None:
        connector = self.graph.connector(block_id, slot)
        if not self.is_creating_connection:
            if slot == -1 and not connector.occupied:
                self._pending_source_id = block_id
                self.state = GestureState.CREATING_CONNECTION
                self.log_func(conf.UI.Log.CONNECTION_STARTED.format(
                    block_number=self.graph.block(block_id).block_number))
            return

        source_id = self._pending_source_id
        if slot != -1 and not connector.occupied and block_id != source_id:
            self._pending_source_id = None
            self.state = GestureState.IDLE
            try:
                self.graph.connect(source_id, block_id, slot)
            except DiagramError as e:
                self.log_func(conf.UI.Log.CONNECTION_DECLINED.format(reason=e))
        else:
            self.cancel_connection()

    def pointer_move(self, x: float, y: float) -> None:
        """
        Updates the active drag with a new pointer position.

        Args:
            x (float): Canvas x-coordinate.
            y (float): Canvas y-coordinate.
        """
        self._pointer = QPointF(x, y)

        if self.state == GestureState.MOVING_BLOCK:
            position = snap_to_grid(x - self._grab_offset.x(), y - self._grab_offset.y())
            self.graph.move_block(self._active_block_id, position)
        elif self.state == GestureState.DRAGGING_CONNECTION_SEGMENT:
            self.graph.set_connection_vertical_x(self._active_connection_id, x - self._segment_offset)
        elif self.state == GestureState.DRAGGING_LABEL:
            self.graph.move_label(self._active_block_id, x - self._grab_offset.x(), y - self._grab_offset.y())
        elif self.state == GestureState.PLACING_FROM_PALETTE and self._preview_block is not None:
            position = snap_to_grid(x, y)
            self._preview_block.move_to(position.x(), position.y())
        # CREATING_CONNECTION only needs the pointer position for the preview.

    def pointer_up(self, x: float, y: float) -> GestureState:
        """
        Ends the active drag.

        A pending connection is not resolved here; it waits for the next press.

        Returns:
            GestureState: The state after handling the release.
        """
        self._pointer = QPointF(x, y)

        if self.state == GestureState.PLACING_FROM_PALETTE:
            self._finish_palette_drop(x, y)

        if self.state != GestureState.CREATING_CONNECTION:
            self._reset_gesture()
            self.state = self._resting_state()
        return self.state

    # --- Palette ---

    def begin_palette_drag(self, block_type: BlockType, x: float, y: float) -> None:
        """
        Starts dragging a new block out of the palette.

        Args:
            block_type (BlockType): The type of block to place.
            x (float): Canvas x-coordinate of the pointer.
            y (float): Canvas y-coordinate of the pointer.
        """
        self._reset_gesture()
        position = snap_to_grid(x, y)
        self._preview_block = Block(0, block_type, position.x(), position.y())
        self._pointer = QPointF(x, y)
        self.state = GestureState.PLACING_FROM_PALETTE

    def _finish_palette_drop(self, x: float, y: float) -> None:
        block_type = self._preview_block.block_type
        position = snap_to_grid(x, y)
        # The whole snapped cell must lie on the canvas, not just the pointer.
        cell = QRectF(position.x(), position.y(), conf.BLOCK_WIDTH, conf.BLOCK_HEIGHT)
        if self.canvas_rect.contains(cell):
            self.graph.place_block(block_type, position)
        else:
            self.log_func(conf.UI.Log.PLACEMENT_DISCARDED)

    # --- Commands ---

    def delete_selected(self) -> bool:
        """
        Deletes the selected block (with its connections) or connection.

        Returns:
            bool: True if something was deleted.
        """
        block = self.selected_block
        if block is not None:
            if block.id == self._pending_source_id:
                self.cancel_connection()
            self.graph.remove_block(block.id)
            self._drop_stale_gesture()
            return True
        connection = self.selected_connection
        if connection is not None:
            self.graph.disconnect(connection.id)
            self._drop_stale_gesture()
            return True
        self.log_func(conf.UI.Log.NOTHING_SELECTED)
        return False

    def _drop_stale_gesture(self) -> None:
        """Ends a drag whose block or connection no longer exists."""
        if self.state in (GestureState.MOVING_BLOCK, GestureState.DRAGGING_LABEL):
            stale = self._active_block_id not in (block.id for block in self.graph.blocks)
        elif self.state == GestureState.DRAGGING_CONNECTION_SEGMENT:
            stale = self._active_connection_id not in (c.id for c in self.graph.connections)
        else:
            stale = False
        if stale:
            self._reset_gesture()
            self.state = self._resting_state()

    def set_selected_expression(self, text: str) -> bool:
        """Sets the label text of the selected block, if any."""
        block = self.selected_block
        if block is None:
            self.log_func(conf.UI.Log.NOTHING_SELECTED)
            return False
        self.graph.set_expression(block.id, text)
        return True

    def clear_all(self) -> None:
        """Empties the diagram and drops any gesture in progress."""
        self.graph.clear()
        self._pending_source_id = None
        self._reset_gesture()
        self.state = GestureState.IDLE

    def load_graph(self, graph: DiagramGraph) -> None:
        """Replaces the edited graph, e.g. after importing a document."""
        graph.log_func = self.log_func
        self.graph = graph
        self._pending_source_id = None
        self._reset_gesture()
        self.state = GestureState.IDLE

    # --- Rendering ---

    def preview_path(self) -> Optional[List[QPointF]]:
        """Returns the polyline from the pending source to the pointer, if armed."""
        if not self.is_creating_connection:
            return None
        start = self.graph.block(self._pending_source_id).output_connector.pos()
        return orthogonal_polyline(start, self._pointer, (start.x() + self._pointer.x()) / 2)

    def frame(self) -> RenderFrame:
        """Collects the current drawing state for the renderer."""
        return RenderFrame(
            blocks=self.graph.blocks,
            connections=self.graph.connections,
            preview_path=self.preview_path(),
            preview_block=self._preview_block if self.state == GestureState.PLACING_FROM_PALETTE else None,
            dragging_label_block_id=self._active_block_id if self.state == GestureState.DRAGGING_LABEL else None,
        )
