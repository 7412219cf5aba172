"""
Project export
Walks folders, compositions and layers into the export document
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .effects import extract_blend_mode, extract_effects
from .keyframes import extract_property_group
from .masks import extract_masks

LOG = logging.getLogger(__name__)

# Host track matte constants: 0 none, 1 alpha, 2 alpha inverted, 3 luma, 4 luma inverted
_TRACK_MATTE_MODES = {
    1: ("alpha", False),
    2: ("alpha", True),
    3: ("luma", False),
    4: ("luma", True),
}


@dataclass
class ExportAccumulator:
    """Assets and clips collected during one export walk"""
    assets: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    clips: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    errors: List[str] = field(default_factory=list)


def clip_id_for(comp_id: Any, layer_index: int) -> str:
    """Clip ids are "<composition id>_<zero-based layer index>"."""
    return f"{comp_id}_{layer_index - 1}"


def extract_track_matte(layer: Any, comp_id: Any) -> Optional[Dict[str, Any]]:
    matte_type = getattr(layer, 'track_matte_type', 0) or 0
    if matte_type == 0:
        return None

    matte_layer = getattr(layer, 'track_matte_layer', None)
    if matte_layer is not None:
        matte_layer_id = clip_id_for(comp_id, matte_layer.index)
    elif layer.index > 1:
        # Legacy mattes always use the layer above
        matte_layer_id = clip_id_for(comp_id, layer.index - 1)
    else:
        matte_layer_id = None

    mode, inverted = _TRACK_MATTE_MODES.get(matte_type, ("unknown", False))
    return {
        'mode': mode,
        'inverted': inverted,
        'matteLayerId': matte_layer_id,
        'trackMatteType': matte_type,
        'matteLayerName': matte_layer.name if matte_layer is not None else None,
    }


def extract_layer(layer: Any, clip_id: str, comp_id: Any) -> Dict[str, Any]:
    """Build the clip record of one layer."""
    parent = getattr(layer, 'parent', None)
    layer_data: Dict[str, Any] = {
        'id': clip_id,
        'parentId': comp_id,
        'parentLayerId': clip_id_for(comp_id, parent.index) if parent is not None else None,
        'clipName': layer.name,
        'index': layer.index,
        'inPoint': layer.in_point,
        'outPoint': layer.out_point,
        'startTime': layer.start_time,
        'enabled': layer.enabled,
        'isThreeD': bool(getattr(layer, 'three_d_layer', False)),
        'layerType': getattr(layer, 'layer_type', None) or "av",
        'properties': {},
    }

    source = getattr(layer, 'source', None)
    if source is not None:
        layer_data['sourceId'] = source.id

    layer_data['masks'] = extract_masks(layer)
    layer_data['trackMatte'] = extract_track_matte(layer, comp_id)
    layer_data.update(extract_blend_mode(layer))
    layer_data['effects'] = extract_effects(layer)

    try:
        extract_property_group(layer, layer_data['properties'])
    except Exception as e:
        layer_data['propertiesError'] = f"Failed to process properties: {e}"
    return layer_data


def extract_composition(comp: Any, parent_id: Any, acc: ExportAccumulator) -> Dict[str, Any]:
    comp_data: Dict[str, Any] = {
        'id': comp.id,
        'name': comp.name,
        'type': "composition",
        'parentId': parent_id,
        'width': getattr(comp, 'width', 0),
        'height': getattr(comp, 'height', 0),
        'duration': getattr(comp, 'duration', 0.0),
        'frameRate': getattr(comp, 'frame_rate', 0.0),
        'clipIds': [],
    }
    acc.assets[str(comp.id)] = comp_data

    for index, layer in enumerate(comp.layers, start=1):
        clip_id = clip_id_for(comp.id, index)
        comp_data['clipIds'].append(clip_id)
        try:
            acc.clips[clip_id] = extract_layer(layer, clip_id, comp.id)
        except Exception as e:
            name = getattr(layer, 'name', f"Layer {index}")
            LOG.error("Error processing layer %d (%s): %s", index, name, e)
            acc.errors.append(f"{clip_id}: {e}")
            acc.clips[clip_id] = {
                'id': clip_id,
                'parentId': comp.id,
                'clipName': name,
                'index': index,
                'layerType': "error",
                'error': f"Failed to process layer: {e}",
                'properties': {},
            }
    return comp_data


def extract_footage(item: Any, parent_id: Any, acc: ExportAccumulator) -> Dict[str, Any]:
    is_still = bool(getattr(item, 'is_still', False))
    frame_rate = getattr(item, 'frame_rate', 0.0) or 0.0
    if getattr(item, 'is_solid', False):
        footage_type = "solid"
    elif is_still:
        footage_type = "image"
    elif frame_rate > 0:
        footage_type = "video"
    else:
        footage_type = "audio"
    footage_data = {
        'id': item.id,
        'name': item.name,
        'type': footage_type,
        'parentId': parent_id,
        'width': getattr(item, 'width', 0),
        'height': getattr(item, 'height', 0),
        'duration': getattr(item, 'duration', 0.0),
        'frameRate': frame_rate,
        'file': getattr(item, 'file', "") or "",
    }
    acc.assets[str(item.id)] = footage_data
    return footage_data


def extract_folder(item: Any, parent_id: Any, acc: ExportAccumulator) -> Dict[str, Any]:
    folder_data = {'id': item.id, 'name': item.name, 'type': "folder", 'parentId': parent_id}
    acc.assets[str(item.id)] = folder_data
    for sub_item in getattr(item, 'items', None) or []:
        extract_item(sub_item, item.id, acc)
    return folder_data


def extract_item(item: Any, parent_id: Any, acc: ExportAccumulator) -> Optional[Dict[str, Any]]:
    """Dispatch one project item into ``acc``."""
    item_type = getattr(item, 'item_type', None)
    if item_type == "folder":
        return extract_folder(item, parent_id, acc)
    if item_type == "composition":
        return extract_composition(item, parent_id, acc)
    if item_type == "footage":
        return extract_footage(item, parent_id, acc)
    return None


def export_project(project: Any) -> Dict[str, Any]:
    """
    Export a whole host project.

    Args:
        project: Host project whose ``items`` are the root folder's items

    Returns:
        The export document
    """
    acc = ExportAccumulator()
    for index, item in enumerate(project.items, start=1):
        try:
            extract_item(item, 0, acc)
        except Exception as e:
            LOG.error("Error processing project item %d: %s", index, e)
            acc.errors.append(f"item {index}: {e}")

    active = getattr(project, 'active_item', None)
    LOG.info("Export complete: %d assets, %d clips", len(acc.assets), len(acc.clips))
    return {
        'projectName': getattr(project, 'name', None) or "Untitled Project",
        'assets': acc.assets,
        'clips': acc.clips,
        'activeCompId': active.id if active is not None else None,
    }
