from PyQt5.QtCore import QPointF

from mathdiagrams.controller import GestureState
from mathdiagrams.model import BlockType

from conftest import cell


def test_palette_drop_places_snapped_block(controller):
    controller.begin_palette_drag(BlockType.ADDITION, 85, 45)
    assert controller.state == GestureState.PLACING_FROM_PALETTE
    controller.pointer_move(130, 90)
    assert controller.frame().preview_block.pos() == QPointF(120, 80)
    assert not controller.graph.has_content

    assert controller.pointer_up(130, 90) == GestureState.IDLE

    blocks = controller.graph.blocks
    assert len(blocks) == 1
    assert blocks[0].pos() == QPointF(120, 80)
    assert blocks[0].block_number == 1
    assert controller.frame().preview_block is None


def test_palette_drop_outside_canvas_is_discarded(controller, log):
    controller.begin_palette_drag(BlockType.GIVEN, 10, 10)
    controller.pointer_up(1300, 50)
    controller.begin_palette_drag(BlockType.GIVEN, 10, 10)
    controller.pointer_up(-5, 50)
    assert controller.graph.blocks == []
    assert log.count("Drop outside the canvas; block discarded.") == 2


def test_click_output_then_input_connects(controller):
    given = controller.graph.place_block(BlockType.GIVEN, cell(0, 0))
    addition = controller.graph.place_block(BlockType.ADDITION, cell(4, 0))

    assert controller.pointer_down(40, 20) == GestureState.CREATING_CONNECTION
    assert controller.pointer_up(40, 20) == GestureState.CREATING_CONNECTION
    controller.pointer_move(100, 50)
    preview = controller.frame().preview_path
    assert preview[0] == QPointF(40, 20)
    assert preview[-1] == QPointF(100, 50)

    assert controller.pointer_down(160, 12) == GestureState.IDLE

    connections = controller.graph.connections
    assert len(connections) == 1
    assert (connections[0].source_id, connections[0].target_id, connections[0].input_index) == (given, addition, 0)
    assert controller.preview_path() is None


def test_pending_connection_survives_other_gestures(controller):
    controller.graph.place_block(BlockType.GIVEN, cell(0, 0))
    addition = controller.graph.place_block(BlockType.ADDITION, cell(4, 4))
    controller.pointer_down(40, 20)

    assert controller.pointer_down(600, 600) == GestureState.CREATING_CONNECTION
    controller.pointer_up(600, 600)
    assert controller.pointer_down(180, 180) == GestureState.MOVING_BLOCK
    controller.pointer_move(260, 180)
    assert controller.pointer_up(260, 180) == GestureState.CREATING_CONNECTION
    assert controller.graph.block(addition).pos() == QPointF(240, 160)

    controller.pointer_down(240, 172)
    assert len(controller.graph.connections) == 1


def test_click_on_occupied_or_own_input_cancels(controller):
    first = controller.graph.place_block(BlockType.GIVEN, cell(0, 0))
    controller.graph.place_block(BlockType.GIVEN, cell(0, 3))
    addition = controller.graph.place_block(BlockType.ADDITION, cell(4, 0))
    controller.graph.connect(first, addition, 0)

    controller.pointer_down(40, 140)
    assert controller.is_creating_connection
    controller.pointer_down(160, 12)
    assert not controller.is_creating_connection
    assert controller.state == GestureState.IDLE
    assert len(controller.graph.connections) == 1

    controller.pointer_down(200, 20)
    assert controller.pending_source_id == addition
    controller.pointer_down(160, 28)
    assert not controller.is_creating_connection
    assert len(controller.graph.connections) == 1
    assert controller.graph.check_invariants() == []


def test_click_on_occupied_output_does_not_arm(controller):
    first = controller.graph.place_block(BlockType.GIVEN, cell(0, 0))
    addition = controller.graph.place_block(BlockType.ADDITION, cell(4, 0))
    controller.graph.connect(first, addition, 0)
    controller.pointer_down(40, 20)
    assert not controller.is_creating_connection


def test_cancel_connection(controller, log):
    controller.graph.place_block(BlockType.GIVEN, cell(0, 0))
    controller.pointer_down(40, 20)
    controller.cancel_connection()
    assert controller.state == GestureState.IDLE
    assert controller.preview_path() is None
    assert log[-1] == "Pending connection cancelled."


def test_move_block_snaps_with_grab_offset(controller):
    block_id = controller.graph.place_block(BlockType.ADDITION, cell(0, 0))

    assert controller.pointer_down(20, 20) == GestureState.MOVING_BLOCK
    assert controller.selected_block.id == block_id
    controller.pointer_move(105, 65)
    assert controller.graph.block(block_id).pos() == QPointF(80, 40)
    assert controller.pointer_up(105, 65) == GestureState.IDLE


def test_drag_vertical_segment(controller):
    given = controller.graph.place_block(BlockType.GIVEN, cell(0, 0))
    addition = controller.graph.place_block(BlockType.ADDITION, cell(4, 2))
    connection_id = controller.graph.connect(given, addition, 0)

    assert controller.pointer_down(102, 50) == GestureState.DRAGGING_CONNECTION_SEGMENT
    assert controller.selected_connection.id == connection_id
    controller.pointer_move(132, 60)
    assert controller.graph.connection(connection_id).vertical_x == 130
    assert controller.pointer_up(132, 60) == GestureState.IDLE
    assert controller.selected_connection.id == connection_id


def test_click_on_horizontal_part_selects_connection(controller):
    given = controller.graph.place_block(BlockType.GIVEN, cell(0, 0))
    addition = controller.graph.place_block(BlockType.ADDITION, cell(4, 2))
    connection_id = controller.graph.connect(given, addition, 0)
    controller.select_block(given)

    assert controller.pointer_down(70, 22) == GestureState.IDLE
    assert controller.selected_connection.id == connection_id
    assert controller.selected_block is None

    controller.pointer_down(600, 600)
    assert controller.selected_connection is None


def overlapping_layout(controller):
    """A label, a vertical segment and a block body all covering (260, 100)."""
    graph = controller.graph
    labelled = graph.place_block(BlockType.ADDITION, cell(10, 10))
    graph.move_label(labelled, 200, 100)
    given = graph.place_block(BlockType.GIVEN, cell(0, 0))
    target = graph.place_block(BlockType.ADDITION, cell(12, 4))
    connection_id = graph.connect(given, target, 0)
    body = graph.place_block(BlockType.SUBTRACTION, cell(6, 2))
    return labelled, connection_id, body


def test_label_wins_over_segment_and_block(controller):
    labelled, _, _ = overlapping_layout(controller)
    controller.select_block(labelled)

    assert controller.pointer_down(260, 100) == GestureState.DRAGGING_LABEL
    assert controller.frame().dragging_label_block_id == labelled
    controller.pointer_move(270, 110)
    assert controller.graph.block(labelled).label.pos() == QPointF(210, 110)
    assert controller.pointer_up(270, 110) == GestureState.IDLE
    assert controller.frame().dragging_label_block_id is None


def test_segment_wins_over_block_and_unselected_label(controller):
    _, connection_id, _ = overlapping_layout(controller)
    assert controller.pointer_down(260, 100) == GestureState.DRAGGING_CONNECTION_SEGMENT
    assert controller.selected_connection.id == connection_id


def test_block_body_when_nothing_else_overlaps(controller):
    _, _, body = overlapping_layout(controller)
    assert controller.pointer_down(250, 115) == GestureState.MOVING_BLOCK
    assert controller.selected_block.id == body


def test_delete_selected_block_and_connection(controller, log):
    given = controller.graph.place_block(BlockType.GIVEN, cell(0, 0))
    addition = controller.graph.place_block(BlockType.ADDITION, cell(4, 2))
    connection_id = controller.graph.connect(given, addition, 0)

    assert not controller.delete_selected()
    assert log[-1] == "Nothing selected."

    controller.select_connection(connection_id)
    assert controller.delete_selected()
    assert controller.graph.connections == []

    controller.graph.connect(given, addition, 1)
    controller.select_block(addition)
    assert controller.delete_selected()
    assert [b.id for b in controller.graph.blocks] == [given]
    assert not controller.graph.block(given).output_connector.occupied


def test_deleting_pending_source_disarms(controller):
    given = controller.graph.place_block(BlockType.GIVEN, cell(0, 0))
    controller.pointer_down(40, 20)
    controller.select_block(given)
    controller.delete_selected()
    assert not controller.is_creating_connection
    assert controller.frame().preview_path is None


def test_set_selected_expression(controller):
    block_id = controller.graph.place_block(BlockType.SQUARE_ROOT, cell(1, 1))
    assert not controller.set_selected_expression("sqrt(x)")
    controller.select_block(block_id)
    assert controller.set_selected_expression("sqrt(x)")
    assert controller.graph.block(block_id).label.text == "sqrt(x)"


def test_clear_all_resets_gesture_and_numbering(controller):
    controller.graph.place_block(BlockType.GIVEN, cell(0, 0))
    controller.pointer_down(40, 20)
    controller.clear_all()
    assert controller.state == GestureState.IDLE
    assert not controller.is_creating_connection
    assert not controller.graph.has_content
    assert controller.graph.block_counter == 1


def test_deleting_dragged_block_ends_the_move(controller):
    controller.graph.place_block(BlockType.ADDITION, cell(0, 0))
    controller.pointer_down(20, 20)

    assert controller.delete_selected()

    assert controller.state == GestureState.IDLE
    controller.pointer_move(105, 65)
    assert controller.pointer_up(105, 65) == GestureState.IDLE
    assert controller.graph.blocks == []
    assert controller.frame().blocks == []


def test_deleting_dragged_connection_ends_the_segment_drag(controller):
    given = controller.graph.place_block(BlockType.GIVEN, cell(0, 0))
    addition = controller.graph.place_block(BlockType.ADDITION, cell(4, 2))
    controller.graph.connect(given, addition, 0)
    controller.pointer_down(102, 50)

    assert controller.delete_selected()

    assert controller.state == GestureState.IDLE
    controller.pointer_move(132, 60)
    controller.pointer_up(132, 60)
    assert controller.graph.connections == []
    assert controller.graph.check_invariants() == []


def test_deleting_block_during_label_drag_ends_the_drag(controller):
    block_id = controller.graph.place_block(BlockType.ADDITION, cell(0, 0))
    controller.select_block(block_id)
    assert controller.pointer_down(150, 70) == GestureState.DRAGGING_LABEL

    assert controller.delete_selected()

    assert controller.state == GestureState.IDLE
    assert controller.frame().dragging_label_block_id is None
    controller.pointer_move(170, 90)
    controller.pointer_up(170, 90)
    assert not controller.graph.has_content


def test_deleting_dragged_block_keeps_pending_connection(controller):
    source = controller.graph.place_block(BlockType.GIVEN, cell(0, 0))
    controller.graph.place_block(BlockType.SQUARE, cell(4, 4))
    controller.pointer_down(40, 20)
    controller.pointer_up(40, 20)
    assert controller.pointer_down(180, 180) == GestureState.MOVING_BLOCK

    controller.delete_selected()

    assert controller.state == GestureState.CREATING_CONNECTION
    assert controller.pending_source_id == source
    controller.pointer_move(300, 300)
    assert controller.frame().preview_path[-1] == QPointF(300, 300)


def test_drop_on_canvas_edge_outside_last_cell_is_discarded(controller):
    controller.begin_palette_drag(BlockType.GIVEN, 10, 10)
    controller.pointer_up(1200, 100)
    controller.begin_palette_drag(BlockType.GIVEN, 10, 10)
    controller.pointer_up(100, 840)
    assert controller.graph.blocks == []

    controller.begin_palette_drag(BlockType.GIVEN, 10, 10)
    controller.pointer_up(1199, 839)
    assert controller.graph.blocks[0].pos() == QPointF(1160, 800)
