from __future__ import annotations

from pathlib import Path

import pytest
from PyQt5.QtCore import QPointF, QSizeF, Qt

import flowbuilder.conf as conf
from flowbuilder.editor import FlowEditor
from flowbuilder.model import PortDirection
from flowbuilder.persistence import MemoryStorage, PersistenceAdapter
from flowbuilder.render import Rect

from conftest import FailingStorage, make_clock


def chain(editor: FlowEditor):
    a = editor.add_block("textInput", QPointF(100, 100))
    b = editor.add_block("aevInference", QPointF(400, 100))
    editor.connect_ports(a, 0, b, 0)
    return a, b


def test_new_editor_starts_with_empty_history(editor: FlowEditor) -> None:
    assert editor.graph.is_empty()
    assert len(editor.history) == 1
    assert editor.undo() is False
    assert editor.redo() is False


def test_each_edit_commits_one_snapshot(editor: FlowEditor) -> None:
    a = editor.add_block("textInput", QPointF(100, 100))
    assert len(editor.history) == 2
    b = editor.add_block("aevInference", QPointF(400, 100))
    assert len(editor.history) == 3
    connection_id = editor.connect_ports(a, 0, b, 0)
    assert len(editor.history) == 4
    assert editor.set_config(b, "threshold", 0.9) is True
    assert len(editor.history) == 5
    assert editor.disconnect(connection_id) is True
    assert len(editor.history) == 6
    assert editor.delete_block(a) is True
    assert len(editor.history) == 7


def test_failed_edits_commit_nothing(editor: FlowEditor) -> None:
    a = editor.add_block("textInput", QPointF(100, 100))
    history_length = len(editor.history)

    assert editor.add_block("bogus", QPointF(0, 0)) is None
    assert editor.connect_ports(a, 0, a, 0) is None
    assert editor.set_config(a, "nope", 1) is False
    assert editor.delete_block("block_missing") is False
    assert editor.move_block(a, QPointF(104, 96)) is False
    assert editor.disconnect_block(a) == 0

    assert len(editor.history) == history_length


def test_camera_changes_are_not_recorded(editor: FlowEditor) -> None:
    editor.add_block("textInput", QPointF(100, 100))
    history_length = len(editor.history)

    editor.zoom_in()
    editor.zoom_out()
    editor.toggle_grid()
    editor.viewport.pan_by(QPointF(30, 30))

    assert len(editor.history) == history_length


def test_undo_three_moves_restores_start_position(editor: FlowEditor) -> None:
    a = editor.add_block("textInput", QPointF(100, 100))
    for step in (1, 2, 3):
        assert editor.move_block(a, QPointF(100 + step * 100, 100 + step * 40))

    for _ in range(3):
        assert editor.undo() is True

    assert editor.graph.get_block(a).position == QPointF(100, 100)
    assert editor.redo() is True
    assert editor.graph.get_block(a).position == QPointF(200, 140)


def test_history_keeps_fifty_snapshots(editor: FlowEditor) -> None:
    a = editor.add_block("loop", QPointF(0, 0))
    for step in range(1, 60):
        editor.move_block(a, QPointF(step * conf.GRID_SIZE, 0))

    assert len(editor.history) == conf.HISTORY_MAX_LENGTH

    undone = 0
    while editor.undo():
        undone += 1
    assert undone == conf.HISTORY_MAX_LENGTH - 1
    # The oldest eleven states were evicted, so undo bottoms out at the tenth move
    assert editor.graph.get_block(a).position == QPointF(10 * conf.GRID_SIZE, 0)

    for step in range(11, 60):
        assert editor.redo() is True
        assert editor.graph.get_block(a).position == QPointF(step * conf.GRID_SIZE, 0)
    assert editor.redo() is False


def test_undo_redo_round_trip_restores_exact_state(editor: FlowEditor) -> None:
    a, b = chain(editor)
    editor.set_config(b, "modelPath", "models/x.aev")
    after = editor.graph.to_dict()

    editor.delete_block(a)
    assert editor.undo() is True
    assert editor.graph.to_dict() == after

    assert editor.undo() is True
    assert editor.redo() is True
    assert editor.graph.to_dict() == after


def test_undo_drops_selection_of_vanished_block(editor: FlowEditor) -> None:
    a = editor.add_block("textInput", QPointF(100, 100))
    editor.select(a)

    editor.undo()

    assert editor.graph.is_empty()
    assert editor.selected_block_id is None


def test_new_edit_after_undo_discards_redo(editor: FlowEditor) -> None:
    a = editor.add_block("textInput", QPointF(100, 100))
    editor.move_block(a, QPointF(300, 300))
    editor.undo()

    editor.move_block(a, QPointF(500, 100))

    assert editor.redo() is False
    assert editor.graph.get_block(a).position == QPointF(500, 100)


def test_quick_add_places_block_at_visible_center(editor: FlowEditor) -> None:
    editor.set_canvas_size(QSizeF(800, 600))
    editor.viewport.set_pan(QPointF(-200, -100))

    block_id = editor.quick_add("notification")

    assert editor.graph.get_block(block_id).position == QPointF(600, 400)


def test_add_block_at_screen_converts_and_snaps(editor: FlowEditor) -> None:
    editor.viewport.set_pan(QPointF(50, 50))
    editor.viewport.zoom = 2.0

    block_id = editor.add_block_at_screen("loop", QPointF(291, 250))

    assert editor.graph.get_block(block_id).position == QPointF(120, 100)


def test_search_blocks(editor: FlowEditor) -> None:
    assert [block_type.key for block_type in editor.search_blocks("voice")] == ["voiceInput", "voiceOutput"]


def test_disconnect_block_is_one_step(editor: FlowEditor) -> None:
    a, b = chain(editor)
    c = editor.add_block("textOutput", QPointF(700, 100))
    editor.connect_ports(b, 0, c, 0)
    history_length = len(editor.history)

    assert editor.disconnect_block(b) == 2

    assert editor.graph.connections == []
    assert len(editor.history) == history_length + 1


def test_auto_align(editor: FlowEditor, notifications) -> None:
    chain(editor)

    assert editor.auto_align() == 2
    positions = sorted((block.position.x(), block.position.y()) for block in editor.graph.blocks)
    assert positions[0] == (100, 100)
    assert notifications[-1][0] == conf.UI.Notify.ALIGNED_TITLE


def test_auto_align_on_empty_graph_does_nothing(editor: FlowEditor) -> None:
    assert editor.auto_align() == 0
    assert len(editor.history) == 1


def test_auto_connect_is_one_step(editor: FlowEditor, notifications) -> None:
    a = editor.add_block("textInput", QPointF(0, 0))
    b = editor.add_block("aevInference", QPointF(300, 0))
    c = editor.add_block("textOutput", QPointF(600, 0))
    history_length = len(editor.history)

    created = editor.auto_connect()

    assert len(created) == 2
    assert len(editor.history) == history_length + 1
    assert notifications[-1] == (conf.UI.Notify.AUTO_CONNECTED_TITLE, conf.UI.Notify.AUTO_CONNECTED.format(count=2))
    assert editor.suggest_connection(c, PortDirection.INPUT) == b

    assert editor.auto_connect() == []
    assert len(editor.history) == history_length + 1

    assert editor.undo() is True
    assert editor.graph.connections == []
    assert editor.graph.get_block(a) is not None


def test_templates_load_as_unsaved_flow(editor: FlowEditor, notifications) -> None:
    chain(editor)
    saved = editor.graph.to_dict()

    template = editor.save_template("Starter")
    assert template.id.startswith(conf.TEMPLATE_ID_PREFIX)
    assert editor.current_flow is None
    assert editor.list_flows() == []
    assert [item.name for item in editor.list_templates()] == ["Starter"]

    editor.new_flow()
    assert editor.load_template(template.id) is True

    assert editor.graph.to_dict() == saved
    assert editor.current_flow is None
    assert len(editor.history) == 1
    assert notifications[-1] == (conf.UI.Notify.TEMPLATE_LOADED_TITLE,
                                 conf.UI.Notify.TEMPLATE_LOADED.format(name="Starter"))
    assert editor.save("From Starter").id.startswith(conf.FLOW_ID_PREFIX)
    assert len(editor.list_templates()) == 1
    assert editor.load_template("template_missing") is False


def test_save_and_load_resets_history(editor: FlowEditor) -> None:
    a, b = chain(editor)
    record = editor.save("Pipeline")
    saved = editor.graph.to_dict()
    editor.delete_block(a)
    editor.add_block("loop", QPointF(0, 0))

    assert editor.load(record.id) is True

    assert editor.graph.to_dict() == saved
    assert len(editor.history) == 1
    assert editor.undo() is False
    assert editor.current_flow_name == "Pipeline"


def test_resave_keeps_flow_id(editor: FlowEditor) -> None:
    chain(editor)
    first = editor.save("Pipeline")

    second = editor.save()

    assert second.id == first.id
    assert second.name == "Pipeline"
    assert len(editor.list_flows()) == 1


def test_load_unknown_flow_keeps_graph(editor: FlowEditor) -> None:
    chain(editor)
    before = editor.graph.to_dict()

    assert editor.load("flow_missing") is False
    assert editor.graph.to_dict() == before


def test_new_flow_clears_graph_and_history(editor: FlowEditor) -> None:
    chain(editor)
    editor.save("Pipeline")

    editor.new_flow()

    assert editor.graph.is_empty()
    assert len(editor.history) == 1
    assert editor.current_flow is None
    assert editor.current_flow_name == conf.DEFAULT_FLOW_NAME


def test_autosave_and_restore(editor: FlowEditor, storage: MemoryStorage) -> None:
    assert editor.autosave() is None
    assert conf.STORAGE_AUTOSAVE_KEY not in storage.items

    chain(editor)
    saved = editor.graph.to_dict()
    history_length = len(editor.history)
    assert editor.autosave() is not None
    assert len(editor.history) == history_length

    editor.new_flow()
    assert editor.restore_autosave() is True
    assert editor.graph.to_dict() == saved
    assert editor.current_flow.id == conf.AUTOSAVE_FLOW_ID

    # Saving a restored autosave creates a regular flow.
    record = editor.save("Recovered")
    assert record.id != conf.AUTOSAVE_FLOW_ID


def test_storage_failure_is_reported_and_graph_kept(messages, notifications) -> None:
    persistence = PersistenceAdapter(FailingStorage(), log_func=messages.append, clock=make_clock())
    editor = FlowEditor(persistence=persistence, log_func=messages.append,
                        notify_func=lambda title, message: notifications.append((title, message)))
    chain(editor)
    before = editor.graph.to_dict()
    history_length = len(editor.history)

    assert editor.save("Doomed") is None
    assert editor.autosave() is None

    assert editor.graph.to_dict() == before
    assert len(editor.history) == history_length
    assert notifications[-1] == (conf.UI.Notify.STORAGE_FAILED_TITLE, "quota exceeded")
    assert conf.UI.Log.STORAGE_FAILED.format(error="quota exceeded") in messages


def test_save_over_unreadable_storage_is_reported(editor: FlowEditor, storage: MemoryStorage, notifications) -> None:
    chain(editor)
    storage.items[conf.STORAGE_FLOWS_KEY] = "{truncated"

    assert editor.save("Doomed") is None

    assert notifications[-1][0] == conf.UI.Notify.STORAGE_FAILED_TITLE
    assert storage.items[conf.STORAGE_FLOWS_KEY] == "{truncated"
    assert editor.current_flow is None


def test_export_and_import(editor: FlowEditor, tmp_path: Path) -> None:
    chain(editor)
    saved = editor.graph.to_dict()
    path = tmp_path / "pipeline.json"

    assert editor.export_flow(str(path), "Pipeline") is not None
    editor.new_flow()
    assert editor.import_flow(str(path)) is True

    assert editor.graph.to_dict() == saved
    assert len(editor.history) == 1


def test_import_bad_file_keeps_graph(editor: FlowEditor, tmp_path: Path, notifications) -> None:
    chain(editor)
    before = editor.graph.to_dict()
    path = tmp_path / "broken.json"
    path.write_text("{", encoding="utf-8")

    assert editor.import_flow(str(path)) is False

    assert editor.graph.to_dict() == before
    assert notifications[-1][0] == conf.UI.Notify.STORAGE_FAILED_TITLE


def test_test_flow_reports(editor: FlowEditor, notifications) -> None:
    a = editor.add_block("loop", QPointF(0, 0))
    editor.connect_ports(a, 0, a, 0)

    report = editor.test_flow()

    assert not report.valid
    assert notifications[-1][0] == conf.UI.Notify.TEST_TITLE


def test_execute_hands_over_a_copy(editor: FlowEditor) -> None:
    chain(editor)
    received = []

    result = editor.execute(lambda flow: received.append(flow) or "done")

    assert result == "done"
    [flow] = received
    assert flow == editor.graph.to_dict()
    flow["blocks"].clear()
    assert len(editor.graph.blocks) == 2


def test_execute_refuses_invalid_flow(editor: FlowEditor, notifications) -> None:
    a = editor.add_block("loop", QPointF(0, 0))
    editor.connect_ports(a, 0, a, 0)
    calls = []

    assert editor.execute(calls.append) is None

    assert calls == []
    assert notifications[-1] == (conf.UI.Notify.EXECUTE_TITLE, conf.UI.Notify.EXECUTE_REFUSED)


@pytest.mark.parametrize("key, expected_zoom", [(Qt.Key_Plus, conf.ZOOM_STEP_FACTOR),
                                                (Qt.Key_Equal, conf.ZOOM_STEP_FACTOR),
                                                (Qt.Key_Minus, 1 / conf.ZOOM_STEP_FACTOR)])
def test_zoom_keys(editor: FlowEditor, key: int, expected_zoom: float) -> None:
    assert editor.handle_key(key, Qt.ControlModifier) is True
    assert editor.viewport.zoom == pytest.approx(expected_zoom)


def test_undo_redo_keys(editor: FlowEditor) -> None:
    editor.add_block("loop", QPointF(0, 0))

    assert editor.handle_key(Qt.Key_Z, Qt.ControlModifier) is True
    assert editor.graph.is_empty()
    assert editor.handle_key(Qt.Key_Y, Qt.ControlModifier) is True
    assert len(editor.graph.blocks) == 1


def test_save_key_saves_or_delegates(editor: FlowEditor) -> None:
    chain(editor)

    assert editor.handle_key(Qt.Key_S, Qt.ControlModifier) is True
    [record] = editor.list_flows()
    assert record.name == conf.DEFAULT_FLOW_NAME

    requests = []
    editor.on_save = lambda: requests.append("save")
    editor.handle_key(Qt.Key_S, Qt.ControlModifier)
    assert requests == ["save"]
    assert len(editor.list_flows()) == 1


def test_quick_add_key_needs_a_handler(editor: FlowEditor) -> None:
    assert editor.handle_key(Qt.Key_K, Qt.ControlModifier) is False

    requests = []
    editor.on_quick_add = lambda: requests.append("quick add")
    assert editor.handle_key(Qt.Key_K, Qt.ControlModifier) is True
    assert requests == ["quick add"]


def test_unbound_keys_are_not_handled(editor: FlowEditor) -> None:
    assert editor.handle_key(Qt.Key_Z) is False
    assert editor.handle_key(Qt.Key_Q, Qt.ControlModifier) is False


def test_wheel_zooms_only_with_modifier(editor: FlowEditor) -> None:
    assert editor.wheel(120, Qt.NoModifier) is False
    assert editor.viewport.zoom == 1.0

    assert editor.wheel(120, Qt.ControlModifier) is True
    assert editor.viewport.zoom == pytest.approx(conf.ZOOM_STEP_FACTOR)
    assert editor.wheel(-120, Qt.ControlModifier) is True
    assert editor.viewport.zoom == pytest.approx(1.0)


def test_zoom_at_keeps_anchor_fixed(editor: FlowEditor) -> None:
    anchor = QPointF(100, 50)
    world_before = editor.viewport.screen_to_world(anchor)

    assert editor.zoom_at(2.0, anchor) is True

    assert editor.viewport.zoom == pytest.approx(2.0)
    assert editor.viewport.world_to_screen(world_before) == anchor
    assert editor.zoom_at(100.0) is True
    assert editor.zoom_at(2.0) is False


def test_render_reflects_selection(editor: FlowEditor) -> None:
    a = editor.add_block("textInput", QPointF(100, 100))
    editor.select(a)

    calls = editor.render()

    borders = [call.border for call in calls if isinstance(call, Rect) and call.border is not None]
    assert conf.BLOCK_SELECTED_BORDER_COLOR in borders
    assert len(editor.render_minimap()) == 3
