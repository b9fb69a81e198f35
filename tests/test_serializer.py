import json

import pytest

from mathdiagrams.graph import (ConnectorOccupiedError, DiagramGraph, InvalidReferenceError, MalformedDocumentError,
                                SelfLoopError)
from mathdiagrams.model import BlockType
from mathdiagrams.serializer import DiagramSerializer

from conftest import cell


@pytest.fixture
def serializer(log):
    return DiagramSerializer(log_func=log.append)


@pytest.fixture
def sample_graph(graph):
    a = graph.place_block(BlockType.GIVEN, cell(0, 0))
    b = graph.place_block(BlockType.GIVEN, cell(0, 4))
    scratch = graph.place_block(BlockType.SQUARE, cell(2, 8))
    addition = graph.place_block(BlockType.ADDITION, cell(5, 2))
    root = graph.place_block(BlockType.SQUARE_ROOT, cell(9, 2))
    graph.remove_block(scratch)
    graph.connect(a, addition, 0, vertical_x=123.5)
    graph.connect(b, addition, 1)
    graph.connect(addition, root, 0)
    graph.set_expression(addition, "a + b")
    graph.move_label(root, 500, 40)
    return graph


def test_round_trip_preserves_blocks_and_edges(serializer, sample_graph):
    restored = serializer.loads(serializer.dumps(sample_graph))

    assert len(restored.blocks) == len(sample_graph.blocks) == 4
    for original, copy in zip(sample_graph.blocks, restored.blocks):
        assert copy.block_type == original.block_type
        assert copy.pos() == original.pos()
        assert copy.block_number == original.block_number
        assert copy.color == original.color
        assert (copy.label.text, copy.label.x, copy.label.y) == (original.label.text, original.label.x, original.label.y)

    def edges(graph):
        return [(graph.index_of(c.source_id), graph.index_of(c.target_id), c.input_index, c.vertical_x)
                for c in graph.connections]

    assert edges(restored) == edges(sample_graph)
    assert restored.block_counter == sample_graph.block_counter == 6
    assert restored.check_invariants() == []


def test_document_layout(serializer, sample_graph):
    document = serializer.to_dict(sample_graph)
    assert document["formatVersion"] == "1.0"
    assert document["blockCounter"] == 6
    assert [entry["blockNumber"] for entry in document["blocks"]] == [1, 2, 4, 5]
    assert document["blocks"][2]["symbol"] == "+"
    assert document["blocks"][2]["inputs"] == 2
    assert document["connections"][0] == {
        "sourceBlockIndex": 0,
        "targetBlockIndex": 2,
        "inputIndex": 0,
        "verticalX": 123.5,
    }


def test_file_round_trip(serializer, sample_graph, tmp_path, log):
    path = tmp_path / "diagram.json"
    serializer.save(sample_graph, str(path))
    assert json.loads(path.read_text(encoding="utf-8"))["blocks"][4 - 1]["type"] == "square-root"

    restored = serializer.load(str(path))
    assert len(restored.connections) == 3
    assert log[-1] == "Loaded 4 block(s) and 3 connection(s)."


def test_format_version_is_optional(serializer):
    graph = serializer.from_dict({"blocks": [{"type": "given", "x": 0, "y": 0}], "connections": [], "blockCounter": 2})
    assert graph.blocks[0].block_type == BlockType.GIVEN
    assert graph.block_counter == 2


def minimal_document(connections):
    return {
        "blocks": [
            {"type": "given", "x": 0, "y": 0, "blockNumber": 1},
            {"type": "addition", "x": 160, "y": 0, "blockNumber": 2},
        ],
        "connections": connections,
        "blockCounter": 3,
    }


@pytest.mark.parametrize("document", [
    [],
    {"blocks": [], "connections": []},
    {"blocks": {}, "connections": [], "blockCounter": 1},
    {"blocks": [{"type": "cube", "x": 0, "y": 0}], "connections": [], "blockCounter": 1},
    {"blocks": [{"type": "given", "x": "left", "y": 0}], "connections": [], "blockCounter": 1},
    minimal_document([{"sourceBlockIndex": 0, "targetBlockIndex": 1}]),
])
def test_malformed_documents(serializer, document):
    with pytest.raises(MalformedDocumentError):
        serializer.from_dict(document)


def test_invalid_json(serializer):
    with pytest.raises(MalformedDocumentError):
        serializer.loads("{not json")


@pytest.mark.parametrize("connections, error", [
    ([{"sourceBlockIndex": 0, "targetBlockIndex": 5, "inputIndex": 0}], InvalidReferenceError),
    ([{"sourceBlockIndex": -1, "targetBlockIndex": 1, "inputIndex": 0}], InvalidReferenceError),
    ([{"sourceBlockIndex": 0, "targetBlockIndex": 1, "inputIndex": 2}], InvalidReferenceError),
    ([{"sourceBlockIndex": 1, "targetBlockIndex": 1, "inputIndex": 0}], SelfLoopError),
    ([{"sourceBlockIndex": 0, "targetBlockIndex": 1, "inputIndex": 0},
      {"sourceBlockIndex": 0, "targetBlockIndex": 1, "inputIndex": 1}], ConnectorOccupiedError),
])
def test_bad_edges_abort_the_whole_import(serializer, connections, error):
    with pytest.raises(error):
        serializer.from_dict(minimal_document(connections))


def test_failed_import_leaves_existing_graph_untouched(serializer, sample_graph):
    before = serializer.dumps(sample_graph)
    with pytest.raises(InvalidReferenceError):
        serializer.from_dict(minimal_document([{"sourceBlockIndex": 0, "targetBlockIndex": 9, "inputIndex": 0}]))
    assert serializer.dumps(sample_graph) == before


def test_loaded_graph_logs_through_serializer(serializer, log):
    graph = serializer.from_dict(minimal_document([]))
    assert isinstance(graph, DiagramGraph)
    log.clear()
    graph.clear()
    assert log == ["Diagram cleared."]


@pytest.mark.parametrize("block_counter", [1, 2])
def test_block_counter_must_exceed_restored_numbers(serializer, block_counter):
    document = minimal_document([])
    document["blockCounter"] = block_counter
    with pytest.raises(MalformedDocumentError):
        serializer.from_dict(document)


def test_restored_numbers_are_not_reused(serializer):
    graph = serializer.from_dict(minimal_document([]))
    graph.place_block(BlockType.GIVEN, cell(5, 5))
    assert [block.block_number for block in graph.blocks] == [1, 2, 3]


@pytest.mark.parametrize("block_number", ["abc", 1.5, True, [1]])
def test_block_number_must_be_an_integer(serializer, block_number):
    document = minimal_document([])
    document["blocks"][0]["blockNumber"] = block_number
    with pytest.raises(MalformedDocumentError):
        serializer.from_dict(document)


def test_duplicate_block_numbers_are_rejected(serializer):
    document = minimal_document([])
    document["blocks"][1]["blockNumber"] = 1
    with pytest.raises(MalformedDocumentError):
        serializer.from_dict(document)


@pytest.mark.parametrize("x, y", [(13, 7), (40, 20), (0.5, 0)])
def test_off_grid_positions_are_rejected(serializer, x, y):
    document = {"blocks": [{"type": "given", "x": x, "y": y}], "connections": [], "blockCounter": 2}
    with pytest.raises(MalformedDocumentError):
        serializer.from_dict(document)


def test_grid_positions_written_as_floats_are_accepted(serializer):
    graph = serializer.from_dict({"blocks": [{"type": "given", "x": 80.0, "y": -40.0}], "connections": [],
                                  "blockCounter": 2})
    assert graph.blocks[0].pos() == cell(2, -1)


@pytest.mark.parametrize("field", ["sourceBlockIndex", "targetBlockIndex", "inputIndex"])
@pytest.mark.parametrize("value", [0.9, "0", None, False])
def test_connection_indices_must_be_integers(serializer, field, value):
    connection = {"sourceBlockIndex": 0, "targetBlockIndex": 1, "inputIndex": 0}
    connection[field] = value
    with pytest.raises(MalformedDocumentError):
        serializer.from_dict(minimal_document([connection]))
