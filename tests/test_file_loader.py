import json
import logging

import pytest

from core import AnimationPlayer
from core.data_structures import Interpolation, PathTrack, ProjectData, PropertyTrack
from core.mask_geometry import build_mask_geometry
from utils import load_json_document, load_json_project, save_json_document

DOCUMENT = {
    'projectName': "Demo",
    'assets': {
        '5': {'id': 5, 'name': "Main", 'type': "composition", 'duration': 4.0, 'clipIds': ["5_0", "5_1"]},
    },
    'clips': {
        '5_0': {
            'id': "5_0",
            'parentId': 5,
            'parentLayerId': None,
            'clipName': "Background",
            'index': 1,
            'inPoint': 0,
            'outPoint': 4,
            'properties': {
                'Opacity': {'name': "Opacity", 'value': 100, 'keyframes': []},
            },
        },
        '5_1': {
            'id': "5_1",
            'parentId': 5,
            'parentLayerId': "5_0",
            'clipName': "Title",
            'index': 2,
            'trackMatte': {'mode': "alpha", 'inverted': False, 'matteLayerId': "5_0"},
            'properties': {
                'X Position': {
                    'name': "X Position",
                    'value': 0,
                    'keyframes': [
                        {'time': 0, 'value': 0, 'easing': {'inType': "BEZIER", 'outType': "BEZIER"}},
                        {'time': "bad", 'value': 3},
                        {'time': 1, 'value': 100, 'easing': {'inType': "WHATEVER", 'outType': "HOLD"}},
                    ],
                },
                'Mask Path': {
                    'name': "Mask Path",
                    'value': {'vertices': [[0, 0], [1, 0], [1, 1]], 'closed': True},
                    'keyframes': [],
                },
            },
            'masks': [
                {'name': "Mask 1", 'index': 1, 'inverted': True, 'maskOpacity': 50, 'maskFeather': [3, 3]},
            ],
        },
    },
    'activeCompId': 5,
}


def test_load_project_parses_clips(tmp_path) -> None:
    path = tmp_path / "export.json"
    path.write_text(json.dumps(DOCUMENT), encoding="utf-8")
    project = load_json_project(path)

    assert project is not None
    assert project.project_name == "Demo"
    assert set(project.clips) == {"5_0", "5_1"}
    title = project.clips["5_1"]
    assert title.parent_layer_id == "5_0"
    assert title.track_matte.mode == "alpha"
    assert [c.id for c in project.composition_clips(5)] == ["5_0", "5_1"]

    mask = title.masks[0]
    assert mask.inverted
    assert mask.opacity.value == 50.0
    assert mask.feather.value == 3.0


def test_bad_keyframes_are_dropped_with_warning(tmp_path, caplog) -> None:
    path = tmp_path / "export.json"
    path.write_text(json.dumps(DOCUMENT), encoding="utf-8")
    with caplog.at_level(logging.WARNING):
        project = load_json_project(path)

    track = project.clips["5_1"].property("X Position")
    assert isinstance(track, PropertyTrack)
    assert [kf.time for kf in track.keyframes] == [0.0, 1.0]
    assert track.keyframes[1].easing.in_type == Interpolation.UNKNOWN
    assert any("Dropping keyframe" in r.getMessage() for r in caplog.records)


def test_path_properties_are_path_tracks(tmp_path) -> None:
    path = tmp_path / "export.json"
    save_json_document(DOCUMENT, path)
    project = load_json_project(path)
    track = project.clips["5_1"].property("Mask Path")
    assert isinstance(track, PathTrack)
    assert track.value.vertices == ((0.0, 0.0), (1.0, 0.0), (1.0, 1.0))


def test_save_creates_parent_folders(tmp_path) -> None:
    path = tmp_path / "nested" / "dir" / "doc.json"
    save_json_document({'projectName': "x"}, path)
    assert load_json_document(path) == {'projectName': "x"}


def test_missing_file_returns_none(tmp_path, caplog) -> None:
    with caplog.at_level(logging.ERROR):
        assert load_json_project(tmp_path / "nope.json") is None
    assert caplog.records


def test_invalid_json_returns_none(tmp_path) -> None:
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")
    assert load_json_document(path) is None


def test_non_object_document_returns_none(tmp_path) -> None:
    path = tmp_path / "list.json"
    path.write_text("[1, 2, 3]", encoding="utf-8")
    assert load_json_document(path) is None


def _two_clip_document(mask_path) -> dict:
    return {
        'projectName': "Masks",
        'assets': {},
        'clips': {
            'a': {'id': "a", 'properties': {}, 'masks': [{'name': "Broken", 'index': 1, 'maskPath': mask_path}]},
            'b': {'id': "b", 'properties': {'Opacity': {'value': 80}}},
        },
    }


@pytest.mark.parametrize("vertices", [[[0]], [['x', 1]]])
def test_unreadable_static_mask_path_falls_back(tmp_path, caplog, vertices) -> None:
    path = tmp_path / "export.json"
    save_json_document(_two_clip_document({'vertices': vertices}), path)
    with caplog.at_level(logging.WARNING):
        project = load_json_project(path)

    assert project is not None
    assert set(project.clips) == {"a", "b"}
    assert project.clips["b"].property("Opacity").value == 80.0
    mask = project.clips["a"].masks[0]
    assert mask.mask_path is None
    geometry = build_mask_geometry(project.clips["a"], 0.0)
    assert geometry[0].is_fallback
    assert any("Ignoring unreadable path of 'Broken'" in r.getMessage() for r in caplog.records)


def test_unreadable_static_path_property_falls_back(caplog) -> None:
    with caplog.at_level(logging.WARNING):
        track = PropertyTrack.from_dict("Mask Path", {'value': {'vertices': [[0]]}, 'keyframes': []})
    assert isinstance(track, PathTrack)
    assert track.value is None
    assert any("Ignoring unreadable path" in r.getMessage() for r in caplog.records)


EFFECT_DOCUMENT = {
    'projectName': "Effects",
    'assets': {},
    'clips': {
        '1_0': {
            'id': "1_0",
            'blendMode': "multiply",
            'blendingModeEnum': 5216,
            'properties': {
                'Text Animators': {
                    'name': "Text Animators",
                    'animators': [{
                        'name': "Animator 1",
                        'properties': [
                            {'name': "Opacity", 'value': 0, 'keyframes': []},
                            {
                                'name': "Range Selector",
                                'start': 0,
                                'end': 100,
                                'offset': 0,
                                'amount': 100,
                                'mode': 1,
                                'shape': 1,
                                'smoothness': 100,
                                'easingProperties': [{
                                    'name': "Start",
                                    'keyframes': [
                                        {'time': 0, 'value': 0, 'easing': {'inType': "LINEAR", 'outType': "LINEAR"}},
                                        {'time': 2, 'value': 100, 'easing': {'inType': "LINEAR", 'outType': "LINEAR"}},
                                    ],
                                }],
                            },
                        ],
                    }],
                },
            },
            'effects': [{
                'name': "Gaussian Blur",
                'matchName': "ADBE Gaussian Blur 2",
                'enabled': True,
                'parameters': [
                    {
                        'name': "Blurriness",
                        'matchName': "ADBE Gaussian Blur 2-0001",
                        'value': 0,
                        'keyframes': [
                            {'time': 0, 'value': 0, 'easing': {'inType': "LINEAR", 'outType': "LINEAR"}},
                            {'time': 1, 'value': 20, 'easing': {'inType': "LINEAR", 'outType': "LINEAR"}},
                        ],
                    },
                    {'name': "Center", 'value': [10, 20], 'keyframes': []},
                ],
            }],
        },
    },
}


def test_effects_and_text_animators_are_parsed() -> None:
    clip = ProjectData.from_dict(EFFECT_DOCUMENT).clips["1_0"]
    assert clip.blend_mode == "multiply"
    assert "Text Animators" not in clip.properties

    effect = clip.effects[0]
    assert effect.name == "Gaussian Blur"
    assert effect.match_name == "ADBE Gaussian Blur 2"
    assert set(effect.parameters) == {"Blurriness", "Center[0]", "Center[1]"}
    assert effect.parameters["Center[1]"].value == 20.0

    animator = clip.text_animators[0]
    assert animator.name == "Animator 1"
    assert set(animator.properties) == {"Opacity"}
    selector = animator.range_selectors[0]
    assert [kf.time for kf in selector.start.keyframes] == [0.0, 2.0]
    assert selector.end.value == 100.0
    assert not selector.offset.keyframes


def test_clip_state_evaluates_effects_and_range_selectors() -> None:
    player = AnimationPlayer()
    player.load_project(ProjectData.from_dict(EFFECT_DOCUMENT))
    state = player.get_clip_state("1_0", 0.5)

    assert state['blend_mode'] == "multiply"
    effect = state['effects'][0]
    assert effect['enabled'] is True
    assert effect['values']['Blurriness'] == pytest.approx(10.0)
    assert effect['values']['Center[0]'] == 10.0

    animator = state['text_animators'][0]
    assert animator['values'] == {'Opacity': 0.0}
    assert animator['range_selectors'][0] == {
        'start': pytest.approx(25.0),
        'end': 100.0,
        'offset': 0.0,
        'amount': 100.0,
    }


def test_missing_blend_mode_defaults_to_normal() -> None:
    clip = ProjectData.from_dict(DOCUMENT).clips["5_0"]
    assert clip.blend_mode == "normal"
    assert clip.effects == []
    assert clip.text_animators == []
