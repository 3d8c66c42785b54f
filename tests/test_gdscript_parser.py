"""Tests for the GDScript structural parser."""

from pathlib import Path

import pytest

from analyzers.errors import EmptyFileError, FileNotFoundAnalysisError, UnreadableFileError
from analyzers.gdscript_parser import (
    GDScriptParser,
    infer_type_from_literal,
    parse_function_signature,
    parse_variable_line,
)


@pytest.mark.parametrize("literal, expected", [
    ("true", "bool"),
    ("false", "bool"),
    ("null", "Nil"),
    ("[1,2]", "Array"),
    ("{}", "Dictionary"),
    ('"text"', "String"),
    ("'text'", "String"),
    ('^"Path/To"', "NodePath"),
    ('&"name"', "StringName"),
    ("0xFF", "int"),
    ("0b1010", "int"),
    ("42", "int"),
    ("1.5", "float"),
    ("MyClass.new()", "MyClass"),
    ("Vector2(1, 2)", "Vector2"),
    ("foo.bar(1)", "Variant"),
    ("[1] + [2]", "Variant"),
    ("", "Variant"),
    (None, "Variant"),
])
def test_infer_type_from_literal(literal, expected):
    assert infer_type_from_literal(literal) == expected


def test_method_signature_round_trip():
    func = parse_function_signature("func add(a: int, b: int = 2) -> int:", 7)
    assert func.name == "add"
    assert [p.name for p in func.parameters] == ["a", "b"]
    assert [p.type for p in func.parameters] == ["int", "int"]
    assert func.parameters[1].default == "2"
    assert func.return_type == "int"
    assert func.line == 7


def test_method_without_parentheses():
    func = parse_function_signature("func no_parens:")
    assert func.name == "no_parens"
    assert func.parameters == []


def test_static_method_and_untyped_params():
    func = parse_function_signature("static func make(x, y := 5) -> Player:")
    assert func.is_static
    assert func.parameters[0].type == "inferred"
    assert func.parameters[1].type == "int"
    assert func.return_type == "Player"


def test_parameter_split_ignores_nesting():
    """Commas inside a default value split the parameter list."""
    func = parse_function_signature("func f(a = [1, 2]):")
    assert len(func.parameters) == 2
    assert func.parameters[0].name == "a"


def test_variable_with_colon_in_string():
    var = parse_variable_line('var x: String = "a:b"')
    assert var.name == "x"
    assert var.type == "String"
    assert var.default == '"a:b"'


def test_variable_walrus_is_inferred():
    var = parse_variable_line("var speed := 10.0  # m/s")
    assert var.type == "inferred"
    assert var.default == "10.0"


def test_variable_annotations_and_constants():
    var = parse_variable_line("@export_range(0, 10) var level: int = 1")
    assert var.is_export
    assert var.annotations == ["@export_range(0, 10)"]
    const = parse_variable_line("const MAX = 5")
    assert const.is_constant
    assert const.scope == "const"
    assert const.type == ""
    onready = parse_variable_line("@onready var label: Label = $Label")
    assert onready.is_onready
    assert onready.scope == "onready"


def test_non_declarations_are_rejected():
    assert parse_variable_line("func_call()") is None
    assert parse_variable_line('print("var x")') is None


def test_parse_player_structure(player_script: str):
    gd_class = GDScriptParser().parse_content(player_script, "res://player.gd")
    assert gd_class.name == "Player"
    assert gd_class.extends == "CharacterBody2D"
    assert [s.name for s in gd_class.signals] == ["hit", "health_changed"]
    assert gd_class.signals[1].parameters == ["new_value: int"]
    assert [v.name for v in gd_class.exports] == ["max_health", "label_text"]
    assert [v.name for v in gd_class.plain_variables] == ["SPEED", "sprite", "state", "target", "spawn_scene"]
    assert [f.name for f in gd_class.functions] == ["_ready", "_physics_process", "take_damage", "_on_health_changed"]
    assert [(e.method, e.signal) for e in gd_class.signal_emissions] == [
        ("take_damage", "hit"),
        ("take_damage", "health_changed"),
    ]


def test_export_on_its_own_line_combines_with_next_var(player_script: str):
    gd_class = GDScriptParser().parse_content(player_script)
    label = next(v for v in gd_class.variables if v.name == "label_text")
    assert label.is_export
    assert label.type == "String"
    assert label.line == 10


def test_body_lines_are_not_serialized(player_script: str):
    parser = GDScriptParser()
    gd_class = parser.parse_content(player_script)
    data = parser.to_dict(gd_class)
    assert "bodies" not in data
    assert all(
        set(m) == {"name", "parameters", "return_type", "is_static", "annotations", "line_number"}
        for m in data["methods"]
    )
    assert len(gd_class.body_of(0)) == 3


def test_duplicate_method_names_pass_through():
    content = "func a():\n    first()\n\nfunc a():\n    second()\n"
    gd_class = GDScriptParser().parse_content(content)
    assert [f.name for f in gd_class.functions] == ["a", "a"]
    assert gd_class.body_of(0)[0][1].strip() == "first()"
    assert gd_class.bodies_by_name()["a"][0][1].strip() == "second()"


def test_dedent_closes_method_body():
    content = "func a():\n    pass\nvar late: int = 1\n"
    gd_class = GDScriptParser().parse_content(content)
    assert [v.name for v in gd_class.variables] == ["late"]


def test_variables_tracked_for_methods_but_not_reported(player_script: str):
    parser = GDScriptParser()
    gd_class = parser.parse_content(player_script, include_variables=False, include_methods=True)
    assert gd_class.variables
    data = parser.to_dict(gd_class, include_variables=False)
    assert data["variables"] == []
    assert data["exports"] == []


def test_no_declarations_is_valid():
    gd_class = GDScriptParser().parse_content("# just a comment\n")
    assert gd_class.name is None
    assert gd_class.functions == []


def test_tool_annotation():
    gd_class = GDScriptParser().parse_content("@tool\nextends Node\n")
    assert gd_class.is_tool
    assert gd_class.extends == "Node"


def test_file_errors(tmp_path: Path):
    parser = GDScriptParser()
    with pytest.raises(FileNotFoundAnalysisError):
        parser.parse_file(tmp_path / "missing.gd")
    empty = tmp_path / "empty.gd"
    empty.write_text("")
    with pytest.raises(EmptyFileError):
        parser.parse_file(empty)
    folder = tmp_path / "folder.gd"
    folder.mkdir()
    with pytest.raises(UnreadableFileError):
        parser.parse_file(folder)


def test_annotated_method_on_one_line():
    """An annotation in front of `func` still opens a method body."""
    content = 'func a():\n    pass\n\n@rpc("any_peer") func sync_pos(p: Vector2):\n    var local_tmp = 1\n'
    gd_class = GDScriptParser().parse_content(content)
    assert [f.name for f in gd_class.functions] == ["a", "sync_pos"]
    assert gd_class.functions[1].annotations == ['@rpc("any_peer")']
    assert gd_class.variables == []
    assert [line for _, line in gd_class.body_of(1)] == ["    var local_tmp = 1"]


def test_method_annotation_on_previous_line():
    content = '@warning_ignore("unused_parameter")\nfunc f(x):\n    pass\n'
    gd_class = GDScriptParser().parse_content(content)
    assert gd_class.functions[0].annotations == ['@warning_ignore("unused_parameter")']
    assert GDScriptParser().to_dict(gd_class)["methods"][0]["annotations"] == ['@warning_ignore("unused_parameter")']


def test_walrus_inside_comment_is_ignored():
    var = parse_variable_line("var speed = 10  # use := for inference")
    assert var.name == "speed"
    assert var.type == ""
    assert var.default == "10"


def test_static_variables():
    content = "static var counter := 0\nstatic func make():\n    pass\n"
    parser = GDScriptParser()
    gd_class = parser.parse_content(content)
    assert [v.name for v in gd_class.variables] == ["counter"]
    assert gd_class.variables[0].is_static
    assert gd_class.variables[0].type == "inferred"
    assert gd_class.functions[0].is_static
    assert parser.to_dict(gd_class)["variables"][0]["is_static"] is True


def test_serialized_declarations_use_line_number(player_script: str):
    parser = GDScriptParser()
    data = parser.to_dict(parser.parse_content(player_script))
    assert data["exports"][0]["line_number"] == 8
    assert data["methods"][0]["line_number"] == 16
    assert data["signals"][1]["line_number"] == 5
