# -*- coding: utf-8 -*-
"""
The diagram graph: owner of all blocks and connections.

`DiagramGraph` is the only place where blocks and connections are created or
destroyed. Every public mutation either completes and leaves the graph
consistent, or raises a `DiagramError` before touching anything.

Invariants kept by this module:
- A connector is occupied iff exactly one live connection references it.
- Every connection refers to two distinct blocks present in the graph.
- Connector and connection geometry always matches the current block positions.
"""

import itertools
from typing import Callable, Dict, Iterator, List, Optional, Tuple

from PyQt5.QtCore import QPointF

import mathdiagrams.conf as conf
from mathdiagrams.model import Block, BlockType, Connection, Connector, ConnectorRole, approximate_text_width

class DiagramError(Exception):
    """Base class for recoverable errors raised by diagram operations."""
    pass

class ConnectorOccupiedError(DiagramError):
    """A connection was requested into a connector that is already in use."""
    pass

class SelfLoopError(DiagramError):
    """A connection was requested from a block to itself."""
    pass

class InvalidReferenceError(DiagramError):
    """An id, slot or document index does not refer to an existing entity."""
    pass

class MalformedDocumentError(DiagramError):
    """A saved document is structurally invalid."""
    pass

class DiagramGraph:
    """
    Aggregate owning all blocks and connections of a diagram.

    Blocks are stored in insertion order. Connections hold block ids, and
    blocks hold no references back to connections; the graph answers "which
    connections touch this block" on demand.

    Attributes:
        block_counter (int): The number the next placed block will receive.
        log_func (callable): A function for logging messages.
    """
    def __init__(self, log_func: Optional[Callable[[str], None]] = None) -> None:
        """
        Initializes an empty DiagramGraph.

        Args:
            log_func (Callable[[str], None], optional): A function for logging.
                Defaults to print.
        """
        self.log_func = log_func if log_func else print
        self._blocks: Dict[int, Block] = {}
        self._connections: Dict[int, Connection] = {}
        self._block_ids = itertools.count(1)
        self._connection_ids = itertools.count(1)
        self.block_counter = conf.FIRST_BLOCK_NUMBER

    # --- Queries ---

    @property
    def blocks(self) -> List[Block]:
        """All blocks in placement order."""
        return list(self._blocks.values())

    @property
    def connections(self) -> List[Connection]:
        """All connections in creation order."""
        return list(self._connections.values())

    @property
    def has_content(self) -> bool:
        return bool(self._blocks or self._connections)

    def block(self, block_id: int) -> Block:
        """
        Looks up a block by id.

        Raises:
            InvalidReferenceError: If no such block exists.
        """
        try:
            return self._blocks[block_id]
        except KeyError:
            raise InvalidReferenceError(conf.UI.Log.UNKNOWN_BLOCK.format(block_id=block_id)) from None

    def connection(self, connection_id: int) -> Connection:
        """
        Looks up a connection by id.

        Raises:
            InvalidReferenceError: If no such connection exists.
        """
        try:
            return self._connections[connection_id]
        except KeyError:
            raise InvalidReferenceError(conf.UI.Log.UNKNOWN_CONNECTION.format(connection_id=connection_id)) from None

    def connections_of(self, block_id: int) -> List[Connection]:
        """Returns every connection that starts or ends at the given block."""
        return [connection for connection in self._connections.values() if connection.touches(block_id)]

    def index_of(self, block_id: int) -> int:
        """Returns the position of a block in placement order."""
        for index, existing_id in enumerate(self._blocks):
            if existing_id == block_id:
                return index
        raise InvalidReferenceError(conf.UI.Log.UNKNOWN_BLOCK.format(block_id=block_id))

    # --- Mutations ---

    def place_block(self, block_type: BlockType, position: QPointF, block_number: Optional[int] = None) -> int:
        """
        Creates a block at a grid-aligned position.

        The caller is responsible for checking canvas bounds and snapping.

        Args:
            block_type (BlockType): The operation of the new block.
            position (QPointF): The grid-aligned top-left corner.
            block_number (int, optional): An explicit display number, used when
                restoring a saved diagram. Defaults to the next counter value.

        Returns:
            int: The id of the new block.
        """
        if block_number is None:
            block_number = self.block_counter
            self.block_counter += 1
        block = Block(next(self._block_ids), block_type, position.x(), position.y(), block_number)
        self._blocks[block.id] = block
        self.log_func(conf.UI.Log.BLOCK_PLACED.format(block_type=block_type.value, block_number=block_number,
                                                      x=block.x, y=block.y))
        return block.id

    def move_block(self, block_id: int, position: QPointF) -> None:
        """
        Moves a block and refreshes the paths of its connections.

        Occupancy is not touched; only coordinates change.
        """
        block = self.block(block_id)
        if block.x == position.x() and block.y == position.y():
            return
        block.move_to(position.x(), position.y())
        for connection in self.connections_of(block_id):
            self._refresh_connection(connection)
        self.log_func(conf.UI.Log.BLOCK_MOVED.format(block_number=block.block_number, x=block.x, y=block.y))

    def connect(self, source_id: int, target_id: int, input_index: int,
                vertical_x: Optional[float] = None) -> int:
        """
        Connects the output of one block to an input slot of another.

        Args:
            source_id (int): The block whose output feeds the wire.
            target_id (int): The block receiving the wire.
            input_index (int): The target input slot.
            vertical_x (float, optional): The vertical segment position.
                Defaults to the midpoint of the endpoints.

        Returns:
            int: The id of the new connection.

        Raises:
            InvalidReferenceError: If a block or slot does not exist.
            SelfLoopError: If source and target are the same block.
            ConnectorOccupiedError: If the target input or the source output
                is already in use.
        """
        source = self.block(source_id)
        target = self.block(target_id)
        if source_id == target_id:
            raise SelfLoopError(conf.UI.Log.SELF_LOOP.format(block_number=source.block_number))
        try:
            target_connector = target.input_connector(input_index)
        except IndexError:
            raise InvalidReferenceError(conf.UI.Log.UNKNOWN_SLOT.format(block_number=target.block_number,
                                                                        slot=input_index)) from None
        if target_connector.occupied:
            raise ConnectorOccupiedError(conf.UI.Log.CONNECTOR_OCCUPIED.format(
                role=conf.UI.CONNECTOR_ROLE_INPUT,
                slot=input_index, block_number=target.block_number))
        if source.output_connector.occupied:
            raise ConnectorOccupiedError(conf.UI.Log.CONNECTOR_OCCUPIED.format(
                role=conf.UI.CONNECTOR_ROLE_OUTPUT, slot=0, block_number=source.block_number))

        connection = Connection(next(self._connection_ids), source, target, input_index, vertical_x)
        source.output_connector.occupied = True
        target_connector.occupied = True
        self._connections[connection.id] = connection
        self.log_func(conf.UI.Log.CONNECTED.format(source_number=source.block_number, slot=input_index,
                                                   target_number=target.block_number))
        return connection.id

    def disconnect(self, connection_id: int) -> None:
        """Removes a connection and releases both of its connectors."""
        connection = self.connection(connection_id)
        source = self._blocks[connection.source_id]
        target = self._blocks[connection.target_id]
        source.output_connector.occupied = False
        target.input_connector(connection.input_index).occupied = False
        del self._connections[connection_id]
        self.log_func(conf.UI.Log.DISCONNECTED.format(source_number=source.block_number,
                                                      slot=connection.input_index,
                                                      target_number=target.block_number))

    def remove_block(self, block_id: int) -> None:
        """
        Removes a block together with every connection touching it.

        The connections are removed first so that the connectors on the other
        side are released before the block disappears.
        """
        block = self.block(block_id)
        attached = self.connections_of(block_id)
        for connection in attached:
            self.disconnect(connection.id)
        del self._blocks[block_id]
        self.log_func(conf.UI.Log.BLOCK_REMOVED.format(block_number=block.block_number, count=len(attached)))

    def set_connection_vertical_x(self, connection_id: int, x: float) -> None:
        """Moves the vertical segment of a connection; there is no collision rule."""
        self.connection(connection_id).vertical_x = x

    def set_expression(self, block_id: int, text: str) -> None:
        """Replaces the text of a block's expression label."""
        block = self.block(block_id)
        block.label.text = text
        self.log_func(conf.UI.Log.BLOCK_EXPRESSION_SET.format(block_number=block.block_number, expression=text))

    def move_label(self, block_id: int, x: float, y: float) -> None:
        """Places a block's label anchor. Labels are not snapped."""
        label = self.block(block_id).label
        label.x = x
        label.y = y

    def clear(self) -> None:
        """Removes everything and restarts block numbering."""
        self._blocks.clear()
        self._connections.clear()
        self.block_counter = conf.FIRST_BLOCK_NUMBER
        self.log_func(conf.UI.Log.DIAGRAM_CLEARED)

    def _refresh_connection(self, connection: Connection) -> None:
        connection.update_path(self._blocks[connection.source_id], self._blocks[connection.target_id])

    # --- Hit testing ---
    # Later blocks are drawn on top, so all hit tests search back to front.

    def hit_test_connector(self, x: float, y: float) -> Optional[Tuple[int, int]]:
        """
        Finds the connector under a point.

        Returns:
            Optional[Tuple[int, int]]: (block id, slot), where slot is -1 for
            the output connector, or None.
        """
        for block in reversed(self._blocks.values()):
            slot = block.connector_at(x, y)
            if slot is not None:
                return block.id, slot
        return None

    def hit_test_block(self, x: float, y: float) -> Optional[int]:
        """Returns the id of the topmost block containing the point, or None."""
        for block in reversed(self._blocks.values()):
            if block.contains(x, y):
                return block.id
        return None

    def hit_test_connection_segment(self, x: float, y: float) -> Optional[Tuple[int, bool]]:
        """
        Finds the connection under a point.

        A grab of the vertical segment (narrow tolerance) is preferred over a
        hit anywhere on the path (wide tolerance).

        Returns:
            Optional[Tuple[int, bool]]: (connection id, on vertical segment), or None.
        """
        connections = list(reversed(self._connections.values()))
        for connection in connections:
            if connection.contains_vertical_part(x, y):
                return connection.id, True
        for connection in connections:
            if connection.contains(x, y):
                return connection.id, False
        return None

    def hit_test_label(self, x: float, y: float,
                       text_width_func: Callable[[str], float] = approximate_text_width) -> Optional[int]:
        """Returns the id of the topmost block whose label is under the point, or None."""
        for block in reversed(self._blocks.values()):
            if block.is_over_label(x, y, text_width_func):
                return block.id
        return None

    def connector(self, block_id: int, slot: int) -> Connector:
        """Returns the output connector (slot -1) or an input connector of a block."""
        block = self.block(block_id)
        if slot == -1:
            return block.output_connector
        try:
            return block.input_connector(slot)
        except IndexError:
            raise InvalidReferenceError(conf.UI.Log.UNKNOWN_SLOT.format(block_number=block.block_number,
                                                                        slot=slot)) from None

    # --- Consistency ---

    def _iter_connectors(self) -> Iterator[Tuple[Block, int, Connector]]:
        for block in self._blocks.values():
            yield block, -1, block.output_connector
            for slot, connector in enumerate(block.input_connectors):
                yield block, slot, connector

    def check_invariants(self) -> List[str]:
        """
        Verifies the topology invariants.

        Returns:
            list[str]: A description of each violation; empty when consistent.
        """
        problems = []
        references: Dict[Tuple[int, int], int] = {}
        for connection in self._connections.values():
            if connection.source_id not in self._blocks or connection.target_id not in self._blocks:
                problems.append(f"{connection!r} references a missing block")
                continue
            if connection.source_id == connection.target_id:
                problems.append(f"{connection!r} is a self-loop")
            for key in ((connection.source_id, -1), (connection.target_id, connection.input_index)):
                references[key] = references.get(key, 0) + 1
            source = self._blocks[connection.source_id]
            target = self._blocks[connection.target_id]
            if connection.input_index >= len(target.input_connectors):
                problems.append(f"{connection!r} targets a missing input slot")
                continue
            if (connection.source_point != source.output_connector.pos()
                    or connection.target_point != target.input_connectors[connection.input_index].pos()):
                problems.append(f"{connection!r} has stale endpoints")

        for block, slot, connector in self._iter_connectors():
            count = references.get((block.id, slot), 0)
            if count > 1:
                problems.append(f"{block!r} slot {slot} is referenced by {count} connections")
            if connector.occupied != (count == 1):
                problems.append(f"{block!r} slot {slot} occupied={connector.occupied} but has {count} connection(s)")
        return problems
