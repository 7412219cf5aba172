"""
Keyframe Engine
Command line entry point

Loads an export document, evaluates clips at a given time and prints their
composed transforms (and optionally mask outlines) as JSON.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from core import AnimationPlayer, DataIntegrityError
from utils import configure_logging, load_json_project
from utils.settings import SettingsManager

LOG = logging.getLogger(__name__)


def _clip_report(player: AnimationPlayer, clip_id: str, time: float, include_masks: bool) -> Dict[str, Any]:
    state = player.get_clip_state(clip_id, time)
    report: Dict[str, Any] = {
        'clipId': clip_id,
        'transform': state['transform'].to_dict(),
        'worldPosition': list(state['world_position']),
        'worldMatrix': state['world_matrix'].tolist(),
        'parentChain': list(state['parent_chain']),
        'opacity': state['opacity'],
        'visible': state['visible'],
        'blendMode': state['blend_mode'],
    }
    if state['effects']:
        report['effects'] = state['effects']
    if state['text_animators']:
        report['textAnimators'] = [
            {'name': a['name'], 'values': a['values'], 'rangeSelectors': a['range_selectors']}
            for a in state['text_animators']
        ]
    if include_masks:
        segments = player.config.curve_segments
        report['masks'] = [
            {
                'name': geometry.name,
                'inverted': geometry.inverted,
                'fallback': geometry.is_fallback,
                'polygon': geometry.to_polygon(segments).tolist(),
            }
            for geometry in state['masks']
        ]
    return report


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Evaluate clip transforms of an exported project at a point in time."
    )
    parser.add_argument("input", type=Path, nargs="?", help="Export JSON document (defaults to the last one used).")
    parser.add_argument("-t", "--time", type=float, default=0.0, help="Time in seconds.")
    parser.add_argument("-c", "--clip", action="append", help="Clip id to evaluate (repeatable, defaults to all).")
    parser.add_argument("--masks", action="store_true", help="Include flattened mask outlines.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    return parser


def main(argv: Optional[List[str]] = None, settings: Optional[SettingsManager] = None) -> int:
    """Main entry point"""
    args = build_parser().parse_args(argv)
    configure_logging(logging.DEBUG if args.verbose else logging.INFO)

    settings = settings or SettingsManager()
    input_path = args.input or (Path(settings.get_last_file()) if settings.get_last_file() else None)
    if input_path is None:
        LOG.error("No input file given and no previous file remembered")
        return 2

    project = load_json_project(input_path)
    if project is None:
        return 1
    settings.set_last_file(str(input_path))

    player = AnimationPlayer(settings.get_engine_config())
    player.load_project(project)

    clip_ids = args.clip or list(project.clips)
    reports = []
    for clip_id in clip_ids:
        try:
            reports.append(_clip_report(player, clip_id, args.time, args.masks))
        except KeyError as e:
            LOG.error("%s", e)
        except DataIntegrityError as e:
            LOG.error("Skipping clip %s: %s", clip_id, e)

    json.dump({'time': args.time, 'clips': reports}, sys.stdout, indent=2)
    sys.stdout.write("\n")
    return 0


if __name__ == '__main__':
    sys.exit(main())
