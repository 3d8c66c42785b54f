"""Pytest configuration and fixtures for the Godot analyzer tests."""

from pathlib import Path

import pytest

from analyzers import ClassRegistry, GlobalClass, ProjectAnalyzer

PLAYER_SCRIPT = '''extends CharacterBody2D
class_name Player

signal hit
signal health_changed(new_value: int)

const SPEED := 300.0
@export var max_health: int = 100
@export
var label_text: String = "a:b"
@onready var sprite = $Sprite2D
var state: String = "idle"
var target: Enemy
var spawn_scene = "res://enemy.tscn"

func _ready():
    health_changed.connect(_on_health_changed)
    var enemy := Enemy.new()
    add_child(enemy)

func _physics_process(delta: float) -> void:
    var direction = Input.get_axis("left", "right")
    velocity.x = direction * SPEED
    move_and_slide()
    self.take_damage(1)

func take_damage(amount: int = 1) -> void:
    hit.emit()
    emit_signal("health_changed", amount)
    $Sprite2D.play("hurt")
    sprite.queue_free()

func _on_health_changed(value):
    print(value)
'''

ENEMY_SCRIPT = '''extends Node2D
class_name Enemy

signal hit
signal died

var mode := "patrol"

func _process(delta):
    if mode == "chase":
        hit.emit()

func die():
    died.emit()
    queue_free()
'''

HUD_SCRIPT = '''extends CanvasLayer

func show_message(text: String) -> void:
    $Label.text = text
'''

MAIN_SCENE = '''[gd_scene load_steps=4 format=3 uid="uid://abc123"]

[ext_resource type="Script" uid="uid://p1" path="res://player.gd" id="1_player"]
[ext_resource type="Script" path="res://enemy.gd" id="2_enemy"]
[ext_resource type="Script" path="res://broken.gd" id="3_broken"]

[node name="Main" type="Node2D"]

[node name="Player" type="CharacterBody2D" parent="."]
script = ExtResource("1_player")
position = Vector2(10, 20)

[node name="Sprite2D" type="Sprite2D" parent="Player"]

[node name="Enemy" type="Node2D" parent="." groups=["enemies"]]
script = ExtResource("2_enemy")

[node name="Enemy2" type="Node2D" parent="."]
script = ExtResource("2_enemy")

[node name="Broken" type="Node" parent="."]
script = ExtResource("3_broken")

[node name="Hud" type="CanvasLayer" parent="."]
script = "res://hud.gd"

[connection signal="hit" from="Enemy" to="Player" method="_on_enemy_hit"]
'''


@pytest.fixture
def sample_project(tmp_path: Path) -> Path:
    """Create a small Godot project on disk."""
    (tmp_path / "project.godot").write_text('config_version=5\n\n[application]\nconfig/name="Sample"\n')
    (tmp_path / "player.gd").write_text(PLAYER_SCRIPT)
    (tmp_path / "enemy.gd").write_text(ENEMY_SCRIPT)
    (tmp_path / "hud.gd").write_text(HUD_SCRIPT)
    (tmp_path / "broken.gd").write_text("")
    (tmp_path / "main.tscn").write_text(MAIN_SCENE)
    return tmp_path


@pytest.fixture
def registry() -> ClassRegistry:
    """Registry matching the sample project's class_name declarations."""
    return ClassRegistry([
        GlobalClass(name="Player", path="res://player.gd", base="CharacterBody2D"),
        GlobalClass(name="Enemy", path="res://enemy.gd", base="Node2D"),
    ])


@pytest.fixture
def analyzer(sample_project: Path, registry: ClassRegistry) -> ProjectAnalyzer:
    return ProjectAnalyzer(sample_project, registry)


@pytest.fixture
def player_script() -> str:
    return PLAYER_SCRIPT
