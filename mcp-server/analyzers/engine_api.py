"""
Engine API Tables
Fixed method tables for Godot engine classes and builtin value types.
Used to tell engine calls apart from project code without a running editor.
"""

from typing import Optional

CONSTRUCTOR = "new"

_OBJECT = {
    "get", "set", "call", "call_deferred", "callv", "connect", "disconnect",
    "is_connected", "emit_signal", "has_method", "has_signal", "get_class",
    "is_class", "get_property_list", "get_method_list", "set_meta", "get_meta",
    "has_meta", "remove_meta", "notification", "free", "get_instance_id",
    "set_script", "get_script", "set_deferred", "is_queued_for_deletion",
}

_NODE = {
    "add_child", "remove_child", "get_child", "get_children", "get_child_count",
    "get_node", "get_node_or_null", "has_node", "find_child", "find_children",
    "get_parent", "get_tree", "get_viewport", "get_window", "queue_free",
    "reparent", "move_child", "add_sibling", "replace_by", "is_inside_tree",
    "is_node_ready", "add_to_group", "remove_from_group", "is_in_group",
    "get_path", "get_index", "set_process", "set_physics_process",
    "set_process_input", "set_process_unhandled_input", "duplicate",
    "create_tween", "print_tree", "get_owner", "set_owner",
}

_CANVAS_ITEM = {
    "queue_redraw", "show", "hide", "is_visible_in_tree", "draw_line",
    "draw_rect", "draw_circle", "draw_texture", "draw_string",
    "get_global_mouse_position", "get_local_mouse_position", "get_canvas_transform",
}

_NODE2D = {
    "look_at", "rotate", "translate", "global_translate", "move_local_x",
    "move_local_y", "to_local", "to_global", "get_angle_to", "apply_scale",
}

_NODE3D = {
    "look_at", "rotate", "rotate_x", "rotate_y", "rotate_z", "translate",
    "global_translate", "to_local", "to_global", "rotate_object_local",
    "orthonormalize", "set_identity",
}

_PHYSICS_BODY = {
    "move_and_slide", "move_and_collide", "is_on_floor", "is_on_wall",
    "is_on_ceiling", "get_slide_collision", "get_slide_collision_count",
    "get_last_slide_collision", "get_floor_normal", "get_real_velocity",
    "apply_impulse", "apply_central_impulse", "apply_force", "apply_central_force",
    "add_collision_exception_with", "remove_collision_exception_with",
}

_AREA = {
    "get_overlapping_bodies", "get_overlapping_areas", "overlaps_body",
    "overlaps_area", "has_overlapping_bodies", "has_overlapping_areas",
}

_CONTROL = {
    "grab_focus", "release_focus", "has_focus", "set_anchors_preset",
    "get_rect", "get_global_rect", "accept_event", "set_position", "set_size",
    "add_theme_color_override", "add_theme_constant_override",
}

# class -> (base, own methods)
ENGINE_CLASSES: dict[str, tuple[Optional[str], set[str]]] = {
    "Object": (None, _OBJECT),
    "RefCounted": ("Object", {"reference", "unreference", "get_reference_count"}),
    "Resource": ("RefCounted", {"duplicate", "get_rid", "take_over_path", "emit_changed"}),
    "Node": ("Object", _NODE),
    "CanvasItem": ("Node", _CANVAS_ITEM),
    "Node2D": ("CanvasItem", _NODE2D),
    "Node3D": ("Node", _NODE3D),
    "Control": ("CanvasItem", _CONTROL),
    "CollisionObject2D": ("Node2D", set()),
    "CollisionObject3D": ("Node3D", set()),
    "PhysicsBody2D": ("CollisionObject2D", _PHYSICS_BODY),
    "PhysicsBody3D": ("CollisionObject3D", _PHYSICS_BODY),
    "CharacterBody2D": ("PhysicsBody2D", set()),
    "CharacterBody3D": ("PhysicsBody3D", set()),
    "RigidBody2D": ("PhysicsBody2D", set()),
    "RigidBody3D": ("PhysicsBody3D", set()),
    "StaticBody2D": ("PhysicsBody2D", set()),
    "StaticBody3D": ("PhysicsBody3D", set()),
    "Area2D": ("CollisionObject2D", _AREA),
    "Area3D": ("CollisionObject3D", _AREA),
    "Sprite2D": ("Node2D", {"get_rect", "is_pixel_opaque"}),
    "Sprite3D": ("Node3D", {"get_item_rect"}),
    "AnimatedSprite2D": ("Node2D", {"play", "stop", "pause", "is_playing", "play_backwards"}),
    "AnimationPlayer": ("Node", {
        "play", "stop", "pause", "is_playing", "queue", "seek", "play_backwards",
        "has_animation", "get_animation", "get_animation_list",
    }),
    "AudioStreamPlayer": ("Node", {"play", "stop", "seek", "get_playback_position"}),
    "AudioStreamPlayer2D": ("Node2D", {"play", "stop", "seek", "get_playback_position"}),
    "AudioStreamPlayer3D": ("Node3D", {"play", "stop", "seek", "get_playback_position"}),
    "Camera2D": ("Node2D", {"make_current", "reset_smoothing", "force_update_scroll"}),
    "Camera3D": ("Node3D", {"make_current", "project_ray_origin", "project_ray_normal", "unproject_position"}),
    "Timer": ("Node", {"start", "stop", "is_stopped"}),
    "Label": ("Control", {"get_line_count", "get_visible_line_count"}),
    "Button": ("Control", {"set_pressed_no_signal"}),
    "CanvasLayer": ("Node", {"show", "hide"}),
    "Tween": ("RefCounted", {
        "tween_property", "tween_callback", "tween_interval", "tween_method",
        "set_parallel", "set_ease", "set_trans", "set_loops", "kill", "play",
        "pause", "stop", "is_running", "chain", "parallel",
    }),
    "SceneTree": ("Object", {
        "change_scene_to_file", "change_scene_to_packed", "reload_current_scene",
        "create_timer", "create_tween", "get_nodes_in_group", "get_first_node_in_group",
        "call_group", "quit", "get_frame", "set_pause", "get_root",
    }),
    "PackedScene": ("Resource", {"instantiate", "can_instantiate", "pack"}),
    "Input": ("Object", {
        "is_action_pressed", "is_action_just_pressed", "is_action_just_released",
        "get_action_strength", "get_axis", "get_vector", "is_key_pressed",
        "is_mouse_button_pressed", "get_mouse_mode", "set_mouse_mode",
        "get_last_mouse_velocity", "action_press", "action_release",
        "start_joy_vibration", "get_connected_joypads", "warp_mouse",
    }),
    "InputMap": ("Object", {"has_action", "add_action", "action_add_event", "get_actions"}),
    "OS": ("Object", {
        "get_name", "get_environment", "has_environment", "get_cmdline_args",
        "get_executable_path", "get_user_data_dir", "shell_open", "execute",
        "is_debug_build", "has_feature", "get_processor_count", "delay_msec",
    }),
    "Engine": ("Object", {
        "get_frames_per_second", "get_physics_frames", "get_process_frames",
        "is_editor_hint", "get_singleton", "has_singleton", "get_version_info",
        "get_main_loop",
    }),
    "Time": ("Object", {
        "get_ticks_msec", "get_ticks_usec", "get_unix_time_from_system",
        "get_datetime_dict_from_system", "get_datetime_string_from_system",
        "get_time_string_from_system",
    }),
    "ResourceLoader": ("Object", {
        "load", "exists", "load_threaded_request", "load_threaded_get",
        "load_threaded_get_status", "has_cached",
    }),
    "ResourceSaver": ("Object", {"save"}),
    "ClassDB": ("Object", {
        "class_exists", "instantiate", "get_class_list", "get_parent_class",
        "class_has_method", "class_get_method_list", "is_parent_class",
    }),
    "ProjectSettings": ("Object", {"get_setting", "set_setting", "has_setting", "globalize_path", "localize_path"}),
    "FileAccess": ("RefCounted", {
        "open", "file_exists", "get_as_text", "get_line", "store_string",
        "store_line", "close", "get_file_as_string", "get_open_error", "eof_reached",
    }),
    "DirAccess": ("RefCounted", {
        "open", "dir_exists_absolute", "make_dir_absolute", "make_dir_recursive_absolute",
        "get_files_at", "get_directories_at", "list_dir_begin", "get_next", "remove_absolute",
    }),
    "JSON": ("Resource", {"stringify", "parse_string", "parse", "get_data", "get_error_message"}),
    "DisplayServer": ("Object", {"window_set_mode", "window_get_mode", "screen_get_size", "window_set_title"}),
    "AudioServer": ("Object", {"get_bus_index", "set_bus_volume_db", "get_bus_volume_db", "set_bus_mute"}),
    "PhysicsServer2D": ("Object", {"body_create", "area_create", "space_create"}),
    "PhysicsServer3D": ("Object", {"body_create", "area_create", "space_create"}),
    "RenderingServer": ("Object", {"set_default_clear_color", "canvas_item_create", "get_rendering_device"}),
    "TranslationServer": ("Object", {"set_locale", "get_locale", "translate"}),
    "RandomNumberGenerator": ("RefCounted", {"randi", "randf", "randi_range", "randf_range", "randfn", "randomize"}),
}

PRIMITIVE_METHODS: dict[str, set[str]] = {
    "String": {
        "num", "num_int64", "num_scientific", "chr", "humanize_size", "length",
        "to_lower", "to_upper", "split", "strip_edges", "begins_with", "ends_with",
        "find", "replace", "substr", "format", "is_empty", "to_int", "to_float",
        "join", "contains", "capitalize", "md5_text", "sha256_text",
    },
    "StringName": {"length", "is_empty", "begins_with", "ends_with"},
    "NodePath": {"get_name", "get_name_count", "get_subname", "is_absolute", "is_empty"},
    "Vector2": {
        "from_angle", "length", "length_squared", "normalized", "distance_to",
        "angle", "angle_to", "angle_to_point", "dot", "cross", "lerp", "rotated",
        "direction_to", "move_toward", "clamp", "abs", "round", "floor", "ceil",
        "limit_length", "is_zero_approx", "is_equal_approx", "slerp", "bounce", "reflect",
    },
    "Vector2i": {"abs", "clamp", "length", "sign", "snapped"},
    "Vector3": {
        "length", "length_squared", "normalized", "distance_to", "dot", "cross",
        "lerp", "rotated", "direction_to", "move_toward", "angle_to", "abs",
        "round", "floor", "ceil", "limit_length", "slerp", "is_zero_approx",
    },
    "Vector3i": {"abs", "clamp", "length", "sign", "snapped"},
    "Vector4": {"length", "normalized", "dot", "lerp", "abs"},
    "Color": {
        "from_hsv", "from_rgba8", "html", "html_is_valid", "from_string",
        "lerp", "darkened", "lightened", "inverted", "to_html", "blend",
    },
    "Rect2": {"has_point", "intersects", "encloses", "grow", "merge", "get_center", "abs"},
    "Rect2i": {"has_point", "intersects", "encloses", "grow", "merge", "get_center", "abs"},
    "Transform2D": {"inverse", "affine_inverse", "rotated", "scaled", "translated", "orthonormalized"},
    "Transform3D": {"inverse", "affine_inverse", "rotated", "scaled", "translated", "looking_at"},
    "Basis": {"inverse", "transposed", "orthonormalized", "get_euler", "from_euler", "looking_at"},
    "Quaternion": {"slerp", "inverse", "normalized", "get_euler", "from_euler"},
    "Plane": {"distance_to", "has_point", "intersects_ray", "project"},
    "AABB": {"has_point", "intersects", "encloses", "grow", "merge", "get_center"},
    "Dictionary": {
        "keys", "values", "has", "has_all", "get", "erase", "clear", "size",
        "is_empty", "merge", "duplicate", "find_key", "hash",
    },
    "Callable": {"call", "call_deferred", "callv", "bind", "unbind", "is_valid", "get_method", "create"},
    "Signal": {"connect", "disconnect", "emit", "is_connected", "get_connections", "get_name"},
}

ARRAY_TYPES = {
    "Array",
    "PackedByteArray",
    "PackedInt32Array",
    "PackedInt64Array",
    "PackedFloat32Array",
    "PackedFloat64Array",
    "PackedStringArray",
    "PackedVector2Array",
    "PackedVector3Array",
    "PackedColorArray",
}

ARRAY_METHODS = {
    "append", "append_array", "push_back", "push_front", "pop_back", "pop_front",
    "insert", "remove_at", "erase", "clear", "size", "is_empty", "has", "find",
    "rfind", "count", "resize", "fill", "sort", "sort_custom", "reverse",
    "slice", "duplicate", "map", "filter", "reduce", "any", "all", "pick_random",
    "shuffle", "min", "max", "front", "back", "bsearch", "to_byte_array",
}

PACKED_EXTRA_METHODS = {
    "PackedByteArray": {"get_string_from_utf8"},
}


def engine_class_methods(class_name: str) -> set[str]:
    """Methods of an engine class including those inherited from its bases."""
    methods: set[str] = set()
    seen = set()
    current: Optional[str] = class_name
    while current and current in ENGINE_CLASSES and current not in seen:
        seen.add(current)
        base, own = ENGINE_CLASSES[current]
        methods |= own
        current = base
    return methods


def is_engine_class(name: str) -> bool:
    return name in ENGINE_CLASSES


def engine_class_has_method(class_name: str, method: str) -> bool:
    return method in engine_class_methods(class_name)


def is_engine_method(method: str) -> bool:
    """True when any known engine class exposes the method."""
    return any(method in own for _, own in ENGINE_CLASSES.values())


def primitive_has_method(type_name: str, method: str) -> bool:
    if type_name in PRIMITIVE_METHODS:
        return method in PRIMITIVE_METHODS[type_name]
    if type_name in ARRAY_TYPES:
        return method in ARRAY_METHODS or method in PACKED_EXTRA_METHODS.get(type_name, set())
    return False
