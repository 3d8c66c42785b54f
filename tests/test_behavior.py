"""Tests for behavioral pattern and scene interaction analysis."""

import pytest

from analyzers.behavior import (
    BehavioralInsights,
    analyze_behavior,
    analyze_scene_interactions,
    complexity_for,
    merge_insights,
)
from analyzers.errors import InvalidStructureError
from analyzers.gdscript_parser import GDScriptParser


def test_player_patterns(player_script: str):
    insights = analyze_behavior(GDScriptParser().parse_content(player_script))
    assert insights.patterns == {
        "initialization",
        "physics_update",
        "event_driven",
        "signal_emitter",
        "signal_emitting_active",
        "state_management",
    }
    assert insights.lifecycle_methods == {"_ready", "_physics_process"}
    assert insights.event_handler_count == 1
    assert insights.signals_defined == ["hit", "health_changed"]
    assert insights.signals_emitted == ["hit", "health_changed"]
    assert insights.variable_type_counts == {"exported": 2, "onready": 1, "constant": 1, "regular": 3}
    assert insights.complexity == "low"


def test_empty_script_has_no_patterns():
    insights = analyze_behavior(GDScriptParser().parse_content("extends Node\n"))
    assert insights.to_dict()["patterns"] == []
    assert insights.complexity == "low"


def test_analyze_behavior_rejects_other_types():
    with pytest.raises(InvalidStructureError):
        analyze_behavior({"functions": []})


@pytest.mark.parametrize("methods, variables, expected", [
    (21, 0, "high"),
    (0, 31, "high"),
    (11, 0, "medium"),
    (0, 16, "medium"),
    (10, 15, "low"),
])
def test_complexity_thresholds(methods, variables, expected):
    assert complexity_for(methods, variables) == expected


def test_player_scene_interactions(player_script: str):
    interactions = analyze_scene_interactions(GDScriptParser().parse_content(player_script))
    assert interactions == {
        "node_queries": ["$Sprite2D"],
        "tree_manipulation": ["add_child", "sprite.queue_free"],
        "scene_loading": [],
        "downward_communication": ["$Sprite2D.play"],
        "upward_communication": ["hit", "health_changed"],
        "signal_connections": ["health_changed"],
    }


def test_scene_loading_and_unique_nodes():
    content = (
        'func spawn():\n'
        '    var scene = load("res://levels/one.tscn")\n'
        '    var level = scene.instantiate()\n'
        '    %Spawner.add_child(level)\n'
        '    get_node("UI/Score").update_score(3)\n'
        '    $Button.pressed.connect(_on_pressed)\n'
    )
    interactions = analyze_scene_interactions(GDScriptParser().parse_content(content))
    assert interactions["scene_loading"] == ["res://levels/one.tscn", "scene.instantiate()"]
    assert interactions["node_queries"] == ["%Spawner", 'get_node("UI/Score")', "$Button"]
    assert interactions["tree_manipulation"] == ["%Spawner.add_child"]
    assert interactions["downward_communication"] == ["%Spawner.add_child", 'get_node("UI/Score").update_score']
    assert interactions["signal_connections"] == ["$Button.pressed"]


def test_merge_keeps_each_signal_once():
    first = BehavioralInsights(
        patterns={"signal_emitter"}, signals_defined=["hit"], signals_emitted=["hit"],
        event_handler_count=1, complexity="low",
    )
    second = BehavioralInsights(
        patterns={"frame_update"}, signals_emitted=["hit", "died"],
        event_handler_count=2, complexity="medium",
    )
    merged = merge_insights([first, second])
    assert merged.signals_defined == ["hit"]
    assert merged.signals_emitted == ["hit", "died"]
    assert merged.patterns == {"signal_emitter", "frame_update"}
    assert merged.event_handler_count == 3
    assert merged.complexity == "medium"


def test_merge_of_nothing_is_empty():
    assert merge_insights([]).to_dict() == BehavioralInsights().to_dict()


def test_insights_from_dict():
    insights = BehavioralInsights.from_dict({"patterns": ["b", "a"], "variable_type_counts": {"exported": 4}})
    assert insights.to_dict()["patterns"] == ["a", "b"]
    assert insights.variable_type_counts == {"exported": 4, "onready": 0, "constant": 0, "regular": 0}
    with pytest.raises(InvalidStructureError):
        BehavioralInsights.from_dict(None)
