"""Tests for the script and scene analysis entry points."""

from pathlib import Path

from analyzers import ProjectAnalyzer
from analyzers.project_analyzer import resolve_script_reference
from analyzers.tscn_parser import TscnNode


def test_analyze_script(analyzer: ProjectAnalyzer):
    result = analyzer.analyze_script("res://player.gd")
    assert result["error"] is None
    structure = result["structure"]
    assert structure["class_name"] == "Player"
    assert [v["name"] for v in structure["exports"]] == ["max_health", "label_text"]
    assert [m["name"] for m in structure["methods"]] == [
        "_ready", "_physics_process", "take_damage", "_on_health_changed"
    ]
    assert structure["dependencies"] == []

    analysis = result["behavioral_analysis"]
    assert analysis["pattern_count"] == 6
    assert analysis["signal_count"] == 2
    assert analysis["variable_count"] == 7
    assert analysis["method_count"] == 4
    assert [s["name"] for s in analysis["method_summaries"]] == [m["name"] for m in structure["methods"]]
    assert analysis["scene_interactions"]["node_queries"] == ["$Sprite2D"]

    assert result["behavioral_context"]["complexity"] == "low"
    assert result["behavioral_flows"]["signal_flows"][0] == {"method": "take_damage", "signal": "hit", "line": 28}
    assert "dependency_tree" not in result


def test_script_paths_resolve_the_same(analyzer: ProjectAnalyzer, sample_project: Path):
    relative = analyzer.analyze_script("player.gd")
    absolute = analyzer.analyze_script(str(sample_project / "player.gd"))
    assert relative["structure"]["class_name"] == absolute["structure"]["class_name"] == "Player"
    assert analyzer.to_res_path(sample_project / "player.gd") == "res://player.gd"


def test_missing_script_reports_error(analyzer: ProjectAnalyzer):
    result = analyzer.analyze_script("res://nope.gd")
    assert result["structure"] is None
    assert result["error"]
    assert result["error_kind"] == "not_found"


def test_empty_script_reports_error(analyzer: ProjectAnalyzer):
    result = analyzer.analyze_script("res://broken.gd")
    assert result["structure"] is None
    assert result["error_kind"] == "empty"


def test_include_flags(analyzer: ProjectAnalyzer):
    result = analyzer.analyze_script("res://player.gd", include_methods=False, include_variables=False)
    structure = result["structure"]
    assert structure["methods"] == []
    assert structure["variables"] == []
    assert structure["exports"] == []
    assert result["behavioral_analysis"]["method_summaries"] == []
    assert result["behavioral_flows"]["call_flows"] == []


def test_dependencies_and_tree(analyzer: ProjectAnalyzer):
    result = analyzer.analyze_script("res://player.gd", include_dependencies=True, max_depth=1)
    kinds = [d["kind"] for d in result["structure"]["dependencies"]]
    assert kinds == ["inheritance", "class_reference", "type_hint", "literal_resource"]
    assert result["dependency_tree"] == {
        "path": "res://player.gd",
        "dependencies": [{"path": "res://enemy.gd", "dependencies": []}],
    }
    assert "dependency_tree" not in analyzer.analyze_script("res://player.gd", include_dependencies=True)


def test_analyze_scene(analyzer: ProjectAnalyzer):
    result = analyzer.analyze_scene("res://main.tscn")
    assert result["error"] is None
    structure = result["structure"]
    assert structure["hierarchy"]["name"] == "Main"
    assert structure["format_version"] == 3
    assert structure["connections"] == [
        {"signal": "hit", "from": "Enemy", "to": "Player", "method": "_on_enemy_hit", "flags": 0}
    ]
    assert result["node_script_mapping"] == [
        {"node_path": "Player", "script_path": "res://player.gd"},
        {"node_path": "Enemy", "script_path": "res://enemy.gd"},
        {"node_path": "Broken", "script_path": "res://broken.gd"},
        {"node_path": "Hud", "script_path": "res://hud.gd"},
    ]
    assert set(result["script_insights"]) == {
        "res://player.gd", "res://enemy.gd", "res://broken.gd", "res://hud.gd"
    }


def test_scene_insights_merge_scripts_and_keep_failures(analyzer: ProjectAnalyzer):
    insights = analyzer.analyze_scene("res://main.tscn")["scene_insights"]
    assert insights["signals_defined"] == ["hit", "health_changed", "died"]
    assert insights["signals_emitted"] == ["hit", "health_changed", "died"]
    assert insights["lifecycle_methods"] == ["_physics_process", "_process", "_ready"]
    assert "frame_update" in insights["patterns"]
    assert insights["event_handler_count"] == 1
    assert insights["variable_type_counts"] == {"exported": 2, "onready": 1, "constant": 1, "regular": 4}
    assert insights["unique_scripts"] == ["res://player.gd", "res://enemy.gd", "res://broken.gd", "res://hud.gd"]
    assert insights["script_count"] == 4
    assert [e["script_path"] for e in insights["script_errors"]] == ["res://broken.gd"]


def test_scene_options(analyzer: ProjectAnalyzer):
    result = analyzer.analyze_scene(
        "res://main.tscn", include_properties=False, include_connections=False,
        max_depth=0, include_script_insights=False,
    )
    structure = result["structure"]
    assert structure["hierarchy"]["children"] == []
    assert "properties" not in structure["hierarchy"]
    assert structure["connections"] == []
    # scripts are still mapped from the full tree
    assert len(result["node_script_mapping"]) == 4
    assert result["script_insights"] == {}
    assert result["scene_insights"] is None


def test_missing_scene(analyzer: ProjectAnalyzer):
    result = analyzer.analyze_scene("res://nowhere.tscn")
    assert result["structure"] is None
    assert result["error_kind"] == "not_found"


def test_two_scripts_emitting_same_signal(tmp_path: Path):
    (tmp_path / "project.godot").write_text("config_version=5\n")
    (tmp_path / "a.gd").write_text("extends Node\nsignal hit\n\nfunc f():\n    hit.emit()\n")
    (tmp_path / "b.gd").write_text('extends Node\n\nfunc g():\n    emit_signal("hit")\n')
    (tmp_path / "pair.tscn").write_text(
        '[gd_scene format=3]\n\n'
        '[node name="Root" type="Node"]\n'
        'script = "res://a.gd"\n\n'
        '[node name="Child" type="Node" parent="."]\n'
        'script = "res://b.gd"\n'
    )
    insights = ProjectAnalyzer(tmp_path).analyze_scene("res://pair.tscn")["scene_insights"]
    assert insights["signals_defined"] == ["hit"]
    assert insights["signals_emitted"] == ["hit"]
    assert insights["script_errors"] == []


def test_for_path_finds_project_root(sample_project: Path):
    nested = sample_project / "scenes" / "levels"
    nested.mkdir(parents=True)
    analyzer = ProjectAnalyzer.for_path(nested)
    assert analyzer.project_path.resolve() == sample_project.resolve()
    assert analyzer.registry.names() == ["Enemy", "Player"]


def test_resolve_script_reference():
    node = TscnNode(name="N", properties={"script": {"value": 'ExtResource("7")', "raw_line": ""}})
    assert resolve_script_reference(node, {"7": "res://seven.gd"}) == "res://seven.gd"
    assert resolve_script_reference(node, {}) is None
    literal = TscnNode(name="L", properties={"script": {"value": '"res://l.gd"', "raw_line": ""}})
    assert resolve_script_reference(literal, {}) == "res://l.gd"
    sub = TscnNode(name="S", properties={"script": {"value": 'SubResource("1")', "raw_line": ""}})
    assert resolve_script_reference(sub, {}) is None
    assert resolve_script_reference(TscnNode(name="X"), {}) is None
