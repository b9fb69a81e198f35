# -*- coding: utf-8 -*-
"""
Save and load diagrams as index-referenced JSON documents.

Blocks are written as an ordered list and connections refer to them by
position in that list. On import, connectors are never read from the file:
each block is rebuilt from its type and position, and each connection goes
through `DiagramGraph.connect`, so the loaded graph obeys the same rules as
one built interactively.
"""

import json
from typing import Any, Callable, Dict, Optional

from PyQt5.QtCore import QPointF

import mathdiagrams.conf as conf
from mathdiagrams.graph import DiagramGraph, InvalidReferenceError, MalformedDocumentError
from mathdiagrams.model import BlockType

Key = conf.Key

def _integer(value: Any) -> int:
    """Accepts only JSON integers; fractional or boolean values are rejected."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(conf.UI.Log.NOT_AN_INTEGER.format(value=value))
    return value

def _grid_coordinate(value: Any) -> float:
    """Converts a saved block coordinate, rejecting positions off the grid."""
    coordinate = float(value)
    if coordinate % conf.GRID_SIZE != 0:
        raise ValueError(conf.UI.Log.OFF_GRID.format(value=value, grid_size=conf.GRID_SIZE))
    return coordinate

class DiagramSerializer:
    """
    Converts a `DiagramGraph` to and from a plain document.

    Import always builds a new graph, so a failed import leaves whatever graph
    the caller already holds untouched.
    """
    def __init__(self, log_func: Optional[Callable[[str], None]] = None) -> None:
        self.log_func = log_func if log_func else print

    # --- Export ---

    def to_dict(self, graph: DiagramGraph) -> Dict[str, Any]:
        """
        Builds the document for a graph.

        Args:
            graph (DiagramGraph): The graph to export.

        Returns:
            dict: The JSON-compatible document.
        """
        blocks = graph.blocks
        index_by_id = {block.id: index for index, block in enumerate(blocks)}
        return {
            Key.FORMAT_VERSION_KEY: conf.UI.Serializer.FORMAT_VERSION,
            Key.BLOCKS_KEY: [
                {
                    Key.X_KEY: block.x,
                    Key.Y_KEY: block.y,
                    Key.WIDTH_KEY: block.width,
                    Key.HEIGHT_KEY: block.height,
                    Key.TYPE_KEY: block.block_type.value,
                    Key.SYMBOL_KEY: block.symbol,
                    Key.INPUTS_KEY: block.input_count,
                    Key.COLOR_KEY: block.color,
                    Key.BLOCK_NUMBER_KEY: block.block_number,
                    Key.EXPRESSION_KEY: block.label.text,
                    Key.LABEL_X_KEY: block.label.x,
                    Key.LABEL_Y_KEY: block.label.y,
                }
                for block in blocks
            ],
            Key.CONNECTIONS_KEY: [
                {
                    Key.SOURCE_BLOCK_INDEX_KEY: index_by_id[connection.source_id],
                    Key.TARGET_BLOCK_INDEX_KEY: index_by_id[connection.target_id],
                    Key.INPUT_INDEX_KEY: connection.input_index,
                    Key.VERTICAL_X_KEY: connection.vertical_x,
                }
                for connection in graph.connections
            ],
            Key.BLOCK_COUNTER_KEY: graph.block_counter,
        }

    def dumps(self, graph: DiagramGraph) -> str:
        return json.dumps(self.to_dict(graph), indent=conf.UI.Serializer.JSON_INDENT, ensure_ascii=False)

    def save(self, graph: DiagramGraph, file_path: str) -> None:
        """Writes the graph to a JSON file."""
        with open(file_path, 'w', encoding='utf-8') as f:
            f.write(self.dumps(graph))
        self.log_func(conf.UI.Log.DIAGRAM_SAVED.format(file_path=file_path))

    # --- Import ---

    def from_dict(self, document: Any) -> DiagramGraph:
        """
        Rebuilds a graph from a document.

        Args:
            document (dict): The parsed document.

        Returns:
            DiagramGraph: A new graph satisfying all topology invariants.

        Raises:
            MalformedDocumentError: If the document structure is invalid.
            InvalidReferenceError: If a connection references a missing block
                or input slot.
            ConnectorOccupiedError: If two connections share a connector.
            SelfLoopError: If a connection joins a block to itself.
        """
        if not isinstance(document, dict):
            raise MalformedDocumentError(conf.UI.Log.DOCUMENT_NOT_OBJECT)
        for key in (Key.BLOCKS_KEY, Key.CONNECTIONS_KEY, Key.BLOCK_COUNTER_KEY):
            if key not in document:
                raise MalformedDocumentError(conf.UI.Log.DOCUMENT_MISSING_KEY.format(key=key))
        block_entries = document[Key.BLOCKS_KEY]
        connection_entries = document[Key.CONNECTIONS_KEY]
        for key, entries in ((Key.BLOCKS_KEY, block_entries), (Key.CONNECTIONS_KEY, connection_entries)):
            if not isinstance(entries, list):
                raise MalformedDocumentError(conf.UI.Log.DOCUMENT_NOT_LIST.format(key=key))

        graph = DiagramGraph(log_func=lambda message: None)
        block_ids = []
        for index, entry in enumerate(block_entries):
            try:
                block_type = BlockType(entry[Key.TYPE_KEY])
                block_number = entry.get(Key.BLOCK_NUMBER_KEY)
                if block_number is not None:
                    block_number = _integer(block_number)
                position = QPointF(_grid_coordinate(entry[Key.X_KEY]), _grid_coordinate(entry[Key.Y_KEY]))
                block_id = graph.place_block(block_type, position, block_number=block_number)
                block = graph.block(block_id)
                if Key.COLOR_KEY in entry:
                    block.color = str(entry[Key.COLOR_KEY])
                if Key.EXPRESSION_KEY in entry:
                    block.label.text = str(entry[Key.EXPRESSION_KEY])
                if Key.LABEL_X_KEY in entry and Key.LABEL_Y_KEY in entry:
                    graph.move_label(block_id, float(entry[Key.LABEL_X_KEY]), float(entry[Key.LABEL_Y_KEY]))
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                raise MalformedDocumentError(conf.UI.Log.DOCUMENT_BAD_ENTRY.format(kind='block', index=index,
                                                                                   error=e)) from e
            block_ids.append(block_id)

        for index, entry in enumerate(connection_entries):
            try:
                source_index = _integer(entry[Key.SOURCE_BLOCK_INDEX_KEY])
                target_index = _integer(entry[Key.TARGET_BLOCK_INDEX_KEY])
                input_index = _integer(entry[Key.INPUT_INDEX_KEY])
                vertical_x = entry.get(Key.VERTICAL_X_KEY)
                vertical_x = float(vertical_x) if vertical_x is not None else None
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                raise MalformedDocumentError(conf.UI.Log.DOCUMENT_BAD_ENTRY.format(kind='connection', index=index,
                                                                                   error=e)) from e
            for block_index in (source_index, target_index):
                if not 0 <= block_index < len(block_ids):
                    raise InvalidReferenceError(conf.UI.Log.INDEX_OUT_OF_RANGE.format(
                        index=index, block_index=block_index, count=len(block_ids)))
            graph.connect(block_ids[source_index], block_ids[target_index], input_index, vertical_x)

        try:
            block_counter = _integer(document[Key.BLOCK_COUNTER_KEY])
        except (TypeError, ValueError) as e:
            raise MalformedDocumentError(conf.UI.Log.DOCUMENT_BAD_ENTRY.format(kind='blockCounter', index=0,
                                                                               error=e)) from e
        self._check_block_numbers(graph, block_counter)
        graph.block_counter = block_counter

        graph.log_func = self.log_func
        self.log_func(conf.UI.Log.DIAGRAM_LOADED.format(blocks=len(block_ids), connections=len(connection_entries)))
        return graph

    @staticmethod
    def _check_block_numbers(graph: DiagramGraph, block_counter: int) -> None:
        """
        Ensures restored block numbers are unique and below the counter, so
        later placements never reuse one.

        Raises:
            MalformedDocumentError: If a number repeats or the counter is too low.
        """
        seen = set()
        for block in graph.blocks:
            if block.block_number in seen:
                raise MalformedDocumentError(conf.UI.Log.DUPLICATE_BLOCK_NUMBER.format(
                    block_number=block.block_number))
            seen.add(block.block_number)
        if seen and block_counter <= max(seen):
            raise MalformedDocumentError(conf.UI.Log.BLOCK_COUNTER_TOO_LOW.format(
                block_counter=block_counter, highest=max(seen)))

    def loads(self, text: str) -> DiagramGraph:
        """Parses a JSON string and rebuilds the graph."""
        try:
            document = json.loads(text)
        except json.JSONDecodeError as e:
            raise MalformedDocumentError(conf.UI.Log.DOCUMENT_NOT_JSON.format(error=e)) from e
        return self.from_dict(document)

    def load(self, file_path: str) -> DiagramGraph:
        """Reads a JSON file and rebuilds the graph."""
        with open(file_path, 'r', encoding='utf-8') as f:
            return self.loads(f.read())
