import numpy as np
import pytest

from core import AnimationPlayer, ProjectData

DOCUMENT = {
    'projectName': "Demo",
    'assets': {'1': {'id': 1, 'type': "composition", 'duration': 2.0, 'clipIds': ["1_0", "1_1"]}},
    'clips': {
        '1_0': {
            'id': "1_0",
            'parentId': 1,
            'index': 1,
            'inPoint': 0.0,
            'outPoint': 1.0,
            'properties': {
                'X Position': {'value': 10},
                'Opacity': {
                    'value': 100,
                    'keyframes': [{'time': 0, 'value': 100}, {'time': 1, 'value': 0}],
                },
            },
        },
        '1_1': {
            'id': "1_1",
            'parentId': 1,
            'parentLayerId': "1_0",
            'index': 2,
            'properties': {'X Position': {'value': 5}},
            'masks': [{'name': "Mask 1", 'index': 1, 'maskPath': {'vertices': [[0, 0], [4, 0], [4, 4]]}}],
        },
    },
    'activeCompId': 1,
}


def _player() -> AnimationPlayer:
    player = AnimationPlayer()
    player.load_project(ProjectData.from_dict(DOCUMENT))
    return player


def test_duration_comes_from_active_composition() -> None:
    assert _player().duration == 2.0


def test_duration_falls_back_to_last_keyframe() -> None:
    document = dict(DOCUMENT, assets={})
    player = AnimationPlayer()
    player.load_project(ProjectData.from_dict(document))
    assert player.duration == 1.0


def test_update_loops_or_stops() -> None:
    player = _player()
    player.update(1.0)
    assert player.current_time == 0.0

    player.playing = True
    player.set_playback_speed(2.0)
    player.update(0.5)
    assert player.current_time == 1.0
    player.update(1.0)
    assert player.current_time == 0.0

    player.loop = False
    player.update(3.0)
    assert player.current_time == 2.0
    assert player.playing is False


def test_playback_speed_stays_positive() -> None:
    player = _player()
    player.set_playback_speed(-1.0)
    assert player.playback_speed == 0.01


def test_clip_state() -> None:
    player = _player()
    state = player.get_clip_state("1_1", 0.5)
    assert state['parent_chain'] == ("1_1", "1_0")
    assert state['world_position'][0] == pytest.approx(15.0)
    assert np.allclose(state['world_matrix'][:3, 3], [15.0, 0.0, 0.0])
    assert state['opacity'] == 1.0
    assert state['visible'] is True
    assert len(state['masks']) == 1
    assert state['masks'][0].segment_count == 3

    parent = player.get_clip_state("1_0", 0.5)
    assert parent['opacity'] == pytest.approx(0.5)
    assert player.get_clip_state("1_0", 1.5)['visible'] is False


def test_clip_state_uses_current_time() -> None:
    player = _player()
    player.current_time = 0.25
    assert player.get_clip_state("1_0")['time'] == 0.25


def test_unknown_clip_raises_key_error() -> None:
    with pytest.raises(KeyError):
        _player().get_clip_state("missing", 0.0)


def test_mask_geometry_is_cached_per_time() -> None:
    player = _player()
    clip = player.get_clip("1_1")
    first = player.get_mask_geometry(clip, 0.5)
    assert player.get_mask_geometry(clip, 0.5) is first
    assert player.get_mask_geometry(clip, 0.75) is not first

    player.invalidate_geometry("1_1")
    assert player.get_mask_geometry(clip, 0.5) is not first

    cached = player.get_mask_geometry(clip, 0.5)
    player.invalidate_geometry()
    assert player.get_mask_geometry(clip, 0.5) is not cached


def test_loading_a_project_clears_the_cache() -> None:
    player = _player()
    clip = player.get_clip("1_1")
    first = player.get_mask_geometry(clip, 0.5)
    player.load_project(ProjectData.from_dict(DOCUMENT))
    assert player.get_mask_geometry(player.get_clip("1_1"), 0.5) is not first


def test_mask_geometry_cache_keeps_only_the_latest_frame() -> None:
    player = _player()
    for frame in range(5000):
        player.get_clip_state("1_1", frame / 60.0)
    assert len(player._geometry_cache) == 1

    clip = player.get_clip("1_1")
    last = player.get_mask_geometry(clip, 4999 / 60.0)
    assert player.get_mask_geometry(clip, 4999 / 60.0) is last
    assert len(player._geometry_cache) == 1


def test_clip_state_defaults_without_effects() -> None:
    state = _player().get_clip_state("1_0", 0.0)
    assert state['blend_mode'] == "normal"
    assert state['effects'] == []
    assert state['text_animators'] == []
