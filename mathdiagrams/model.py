# -*- coding: utf-8 -*-
"""
Data model of the math-expression diagram.

This module provides the following classes:
- `ConnectorRole`: Whether a connector is a block's output or one of its inputs.
- `BlockType`: The operation a block stands for.
- `Connector`: An attachment point on a block, regenerated from the block's geometry.
- `ExpressionLabel`: The free-text label drawn next to a block.
- `Block`: A typed, grid-aligned node with one output and zero to two inputs.
- `Connection`: A directed wire from a block's output to another block's input slot.

Geometry uses Qt's value types (`QPointF`, `QRectF`, `QLineF`) so the model
can be drawn directly by the Qt front-end in `engine.py`, but nothing here
requires a running QApplication.
"""

import math
from enum import Enum
from typing import Callable, List, Optional

from PyQt5.QtCore import QLineF, QPointF, QRectF

import mathdiagrams.conf as conf

class ConnectorRole(Enum):
    """Defines the role of a connector, either as an input or an output."""
    INPUT = 0
    OUTPUT = 1

class BlockType(Enum):
    """The math operations a block can represent."""
    ADDITION = 'addition'
    SUBTRACTION = 'subtraction'
    MULTIPLICATION = 'multiplication'
    DIVISION = 'division'
    EQUALS = 'equals'
    SQUARE_ROOT = 'square-root'
    SQUARE = 'square'
    SUBSTITUTE = 'substitute'
    GIVEN = 'given'

    @property
    def symbol(self) -> str:
        """The display glyph for this type."""
        return conf.BLOCK_TYPES[self.value][0]

    @property
    def color(self) -> str:
        """The default fill color for this type, as a hex string."""
        return conf.BLOCK_TYPES[self.value][1]

    @property
    def input_count(self) -> int:
        """How many input connectors a block of this type has."""
        return conf.BLOCK_TYPES[self.value][2]

def snap_to_grid(x: float, y: float) -> QPointF:
    """
    Quantizes a canvas position to the top-left corner of its grid cell.

    Args:
        x (float): The raw x-coordinate.
        y (float): The raw y-coordinate.

    Returns:
        QPointF: The grid-aligned position.
    """
    return QPointF(math.floor(x / conf.GRID_SIZE) * conf.GRID_SIZE,
                   math.floor(y / conf.GRID_SIZE) * conf.GRID_SIZE)

class Connector:
    """
    An input or output attachment point on a block.

    Connectors are plain records owned by a `Block`. They are rebuilt from the
    block's position every time it moves, so nothing outside the block should
    hold on to one; connections refer to them by (block, slot) instead.

    Attributes:
        x (float): Absolute canvas x-coordinate of the center.
        y (float): Absolute canvas y-coordinate of the center.
        radius (float): The visual radius.
        role (ConnectorRole): Input or output.
        occupied (bool): True while exactly one connection references this connector.
    """
    def __init__(self, x: float, y: float, role: ConnectorRole, occupied: bool = False) -> None:
        self.x = x
        self.y = y
        self.radius = conf.CONNECTOR_RADIUS
        self.role = role
        self.occupied = occupied

    def pos(self) -> QPointF:
        """Returns the connector's center as a point."""
        return QPointF(self.x, self.y)

    def contains(self, x: float, y: float) -> bool:
        """Checks whether a point is within the (enlarged) hit radius."""
        return QLineF(self.pos(), QPointF(x, y)).length() <= conf.CONNECTOR_HIT_RADIUS

    def __repr__(self) -> str:
        return f"Connector({self.role.name}, {self.x}, {self.y}, occupied={self.occupied})"

class ExpressionLabel:
    """
    The free-text label attached to a block.

    The anchor is the left end of the text baseline. It is independent of the
    grid and is never snapped.
    """
    def __init__(self, text: str, x: float, y: float) -> None:
        self.text = text
        self.x = x
        self.y = y

    def pos(self) -> QPointF:
        return QPointF(self.x, self.y)

    def hit_rect(self, text_width: float) -> QRectF:
        """
        Returns the clickable area of the label.

        Args:
            text_width (float): The rendered width of the label text.

        Returns:
            QRectF: The padded bounding box around the text.
        """
        return QRectF(self.x - conf.LABEL_HIT_PADDING,
                      self.y - conf.LABEL_HIT_HEIGHT / 2,
                      text_width + 2 * conf.LABEL_HIT_PADDING,
                      conf.LABEL_HIT_HEIGHT)

def approximate_text_width(text: str) -> float:
    """Estimates the width of a label when no font metrics are available."""
    return len(text) * conf.LABEL_APPROX_CHAR_WIDTH

class Block:
    """
    Represents a typed math operation placed on the grid.

    A block's connectors are a pure function of its type and position; they
    are regenerated by `update_connectors` whenever the position changes and
    carry over the occupied flags slot by slot.

    Attributes:
        id (int): The identifier assigned by the owning graph.
        block_type (BlockType): The operation.
        x (float): Grid-aligned x-coordinate of the top-left corner.
        y (float): Grid-aligned y-coordinate of the top-left corner.
        width (float): The block width (one grid cell).
        height (float): The block height (one grid cell).
        symbol (str): The glyph drawn inside the block.
        color (str): The fill color as a hex string.
        block_number (int): Display number assigned on placement.
        label (ExpressionLabel): The draggable expression label.
        output_connector (Connector): The single output.
        input_connectors (list[Connector]): The ordered inputs.
        selected (bool): Selection flag for the renderer.
    """
    def __init__(self,
                 block_id: int,
                 block_type: BlockType,
                 x: float,
                 y: float,
                 block_number: Optional[int] = None,
                 width: float = conf.BLOCK_WIDTH,
                 height: float = conf.BLOCK_HEIGHT
                 ) -> None:
        """
        Initializes a Block and derives its connectors.

        Args:
            block_id (int): The identifier assigned by the owning graph.
            block_type (BlockType): The operation this block represents.
            x (float): The grid-aligned x-coordinate.
            y (float): The grid-aligned y-coordinate.
            block_number (int, optional): The display number. Defaults to None
                for preview blocks that are not part of a graph.
            width (float, optional): The block width. Defaults to one grid cell.
            height (float, optional): The block height. Defaults to one grid cell.
        """
        self.id = block_id
        self.block_type = block_type
        self.x = x
        self.y = y
        self.width = width
        self.height = height
        self.symbol = block_type.symbol
        self.color = block_type.color
        self.block_number = block_number
        self.selected = False
        self.label = ExpressionLabel(conf.DEFAULT_EXPRESSION,
                                     x + width + conf.LABEL_OFFSET_X,
                                     y + height + conf.LABEL_OFFSET_Y)
        self.output_connector: Optional[Connector] = None
        self.input_connectors: List[Connector] = []
        self.update_connectors()

    @property
    def input_count(self) -> int:
        return self.block_type.input_count

    def pos(self) -> QPointF:
        return QPointF(self.x, self.y)

    def rect(self) -> QRectF:
        """Returns the block's rectangle in canvas coordinates."""
        return QRectF(self.x, self.y, self.width, self.height)

    def update_connectors(self) -> None:
        """
        Regenerates the connectors from the current position.

        Occupied flags are preserved per slot, so moving a block never changes
        which of its connectors are in use.
        """
        was_output_occupied = self.output_connector.occupied if self.output_connector else False
        was_inputs_occupied = [connector.occupied for connector in self.input_connectors]

        mid_y = self.y + self.height / 2
        self.output_connector = Connector(self.x + self.width, mid_y, ConnectorRole.OUTPUT, was_output_occupied)

        if self.input_count == 1:
            input_ys = [mid_y]
        elif self.input_count == 2:
            input_ys = [self.y + conf.TWO_INPUT_EDGE_OFFSET,
                        self.y + self.height - conf.TWO_INPUT_EDGE_OFFSET]
        else:
            input_ys = []

        self.input_connectors = [
            Connector(self.x, input_y, ConnectorRole.INPUT,
                      was_inputs_occupied[slot] if slot < len(was_inputs_occupied) else False)
            for slot, input_y in enumerate(input_ys)
        ]

    def move_to(self, x: float, y: float) -> None:
        """
        Moves the block and recomputes its connectors.

        The label is translated by the same delta so the user's offset between
        block and label is kept.
        """
        dx, dy = x - self.x, y - self.y
        self.x = x
        self.y = y
        self.label.x += dx
        self.label.y += dy
        self.update_connectors()

    def input_connector(self, slot: int) -> Connector:
        """Returns the input connector at `slot`, raising IndexError if there is none."""
        if not 0 <= slot < len(self.input_connectors):
            raise IndexError(slot)
        return self.input_connectors[slot]

    def contains(self, x: float, y: float) -> bool:
        """Checks whether a point lies inside the block, edges included."""
        return self.x <= x <= self.x + self.width and self.y <= y <= self.y + self.height

    def connector_at(self, x: float, y: float) -> Optional[int]:
        """
        Finds the connector under a point.

        Args:
            x (float): The x-coordinate.
            y (float): The y-coordinate.

        Returns:
            Optional[int]: -1 for the output connector, the slot index for an
            input connector, or None if no connector is hit.
        """
        if self.output_connector.contains(x, y):
            return -1
        for slot, connector in enumerate(self.input_connectors):
            if connector.contains(x, y):
                return slot
        return None

    def is_over_label(self, x: float, y: float,
                      text_width_func: Callable[[str], float] = approximate_text_width) -> bool:
        """Checks whether a point is over the expression label."""
        return self.label.hit_rect(text_width_func(self.label.text)).contains(QPointF(x, y))

    def __repr__(self) -> str:
        return f"Block(#{self.block_number}, {self.block_type.value}, {self.x}, {self.y})"

class Connection:
    """
    A directed wire from one block's output to another block's input slot.

    The connection refers to its blocks by id and to the target input by slot
    index; the endpoint coordinates are re-read from the blocks by
    `update_path` whenever either block moves. The wire is drawn as an
    orthogonal polyline whose vertical segment sits at `vertical_x`.

    Attributes:
        id (int): The identifier assigned by the owning graph.
        source_id (int): Id of the block whose output feeds the wire.
        target_id (int): Id of the block receiving the wire.
        input_index (int): Slot of the target's input connector.
        vertical_x (float): X-coordinate of the vertical segment.
        selected (bool): Selection flag for the renderer.
    """
    def __init__(self, connection_id: int, source: Block, target: Block, input_index: int,
                 vertical_x: Optional[float] = None) -> None:
        """
        Initializes a Connection between two blocks.

        Args:
            connection_id (int): The identifier assigned by the owning graph.
            source (Block): The source block.
            target (Block): The target block.
            input_index (int): The target input slot.
            vertical_x (float, optional): The vertical segment position.
                Defaults to the midpoint of the two endpoints.
        """
        self.id = connection_id
        self.source_id = source.id
        self.target_id = target.id
        self.input_index = input_index
        self.selected = False
        self.source_point = QPointF()
        self.target_point = QPointF()
        self.update_path(source, target)
        if vertical_x is None:
            vertical_x = (self.source_point.x() + self.target_point.x()) / 2
        self.vertical_x = vertical_x

    def update_path(self, source: Block, target: Block) -> None:
        """
        Refreshes the endpoint coordinates from the blocks' current connectors.

        `vertical_x` is left alone; it only changes when dragged.
        """
        self.source_point = source.output_connector.pos()
        self.target_point = target.input_connector(self.input_index).pos()

    def polyline(self) -> List[QPointF]:
        """Returns the four corner points of the orthogonal path."""
        return orthogonal_polyline(self.source_point, self.target_point, self.vertical_x)

    def contains_vertical_part(self, x: float, y: float,
                               tolerance: float = conf.VERTICAL_SEGMENT_GRAB_TOLERANCE) -> bool:
        """Checks whether a point is on the vertical segment."""
        low = min(self.source_point.y(), self.target_point.y())
        high = max(self.source_point.y(), self.target_point.y())
        return abs(x - self.vertical_x) <= tolerance and low <= y <= high

    def contains(self, x: float, y: float, tolerance: float = conf.CONNECTION_HIT_TOLERANCE) -> bool:
        """Checks whether a point is on any of the three segments."""
        if self.contains_vertical_part(x, y, tolerance):
            return True
        for stub_end in (self.source_point, self.target_point):
            low = min(stub_end.x(), self.vertical_x)
            high = max(stub_end.x(), self.vertical_x)
            if abs(y - stub_end.y()) <= tolerance and low <= x <= high:
                return True
        return False

    def touches(self, block_id: int) -> bool:
        return block_id in (self.source_id, self.target_id)

    def __repr__(self) -> str:
        return f"Connection({self.source_id} -> {self.target_id}[{self.input_index}], x={self.vertical_x})"

def orthogonal_polyline(start: QPointF, end: QPointF, vertical_x: float) -> List[QPointF]:
    """
    Calculates the Manhattan path between two points.

    Args:
        start (QPointF): The source point.
        end (QPointF): The target point.
        vertical_x (float): X-coordinate of the vertical segment.

    Returns:
        list[QPointF]: start, the two corners, and end.
    """
    return [QPointF(start),
            QPointF(vertical_x, start.y()),
            QPointF(vertical_x, end.y()),
            QPointF(end)]
