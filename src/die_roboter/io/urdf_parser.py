"""URDF loading into RobotModel.

Three entry points share one parser: ``parse_urdf`` for XML already in
memory, ``load_urdf`` for a local file and ``fetch_urdf`` for the async
load path used by the robot controller, which also accepts http(s) URLs.
"""

import asyncio
import logging
import urllib.request
from collections import deque
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

import jax.numpy as jnp
import numpy as np
from lxml import etree

from die_roboter.core.robot_model import (
    Geometry,
    Joint,
    JointLimit,
    Link,
    RobotModel,
    Visual,
)
from die_roboter.transforms import se3, so3

logger = logging.getLogger(__name__)

MESH_TYPES = ("stl", "fbx", "obj", "dae")


class URDFParseError(ValueError):
    """The URDF document is malformed or internally inconsistent."""


def parse_urdf(data: Union[str, bytes], prefix: str = "") -> RobotModel:
    """Parse URDF XML into a RobotModel.

    Args:
        data: The URDF document.
        prefix: Folder that relative and ``package://`` mesh paths resolve
                against.

    Returns:
        RobotModel: Records and kinematic tables of the robot.

    Raises:
        URDFParseError: If the XML is malformed, the root element is not
            ``<robot>``, a joint references a missing link, or the robot does
            not have exactly one root link.
    """
    if isinstance(data, str):
        data = data.encode("utf-8")
    try:
        root = etree.fromstring(data)
    except etree.XMLSyntaxError as e:
        raise URDFParseError(f"Invalid URDF XML: {e}") from e

    if root.tag != "robot":
        raise URDFParseError(f"Invalid URDF: no <robot> (found <{root.tag}>)")

    colors = _parse_materials(root)
    links = _parse_links(root, colors, prefix)
    joints = _parse_joints(root, links)

    return _build_model(root.get("name", ""), links, joints, colors)


def load_urdf(urdf_path: Union[str, Path], prefix: str = "") -> RobotModel:
    """Load a URDF file from disk and parse it."""
    return parse_urdf(Path(urdf_path).read_bytes(), prefix=prefix)


async def fetch_urdf(location: str, prefix: str = "",
                     timeout: Optional[float] = None) -> RobotModel:
    """Read a URDF from a URL or a file path without blocking the event loop.

    Args:
        location: ``http://``/``https://`` URL or a filesystem path.
        prefix: Mesh path prefix, see ``parse_urdf``.
        timeout: Seconds to wait for the document; ``None`` waits forever.

    Raises:
        asyncio.TimeoutError: If ``timeout`` elapses first.
    """
    read = asyncio.to_thread(_read_location, location, timeout)
    if timeout is not None:
        data = await asyncio.wait_for(read, timeout)
    else:
        data = await read
    return parse_urdf(data, prefix=prefix)


def _read_location(location: str, timeout: Optional[float]) -> bytes:
    if location.startswith(("http://", "https://")):
        logger.debug("Fetching URDF from %s", location)
        with urllib.request.urlopen(location, timeout=timeout) as response:
            return response.read()
    return Path(location).read_bytes()


def resolve_filename(raw: str, prefix: str = "") -> str:
    """Resolve a mesh filename from a URDF against ``prefix``.

    Absolute http(s) and data URIs are returned unchanged; ``package://`` and
    ``package:/`` schemes are stripped; anything else is treated as relative.
    """
    if raw.startswith(("http://", "https://", "data:")):
        return raw
    for scheme in ("package://", "package:/"):
        if raw.startswith(scheme):
            return _join_url(prefix, raw[len(scheme):])
    return _join_url(prefix, raw)


def _join_url(base: str, rel: str) -> str:
    if not base.startswith("/"):
        base = "/" + base
    if not base.endswith("/"):
        base = base + "/"
    return base + rel.lstrip("/")


def _floats(text: Optional[str], default: Tuple[float, ...]) -> Tuple[float, ...]:
    if text is None or not text.split():
        return default
    values = tuple(_number(x) for x in text.split())
    if len(values) != len(default):
        raise URDFParseError(f"Expected {len(default)} numbers, got '{text}'")
    return values


def _number(text) -> float:
    try:
        return float(text)
    except (TypeError, ValueError):
        raise URDFParseError(f"Invalid number: {text!r}") from None


def _optional_float(text: Optional[str]) -> Optional[float]:
    return None if text is None else _number(text)


def _parse_materials(root) -> Dict[str, Tuple[float, ...]]:
    colors = {}
    for material in root.findall("material"):
        name = material.get("name")
        if name is None:
            logger.warning("Found <material> with no name attribute")
            continue
        color = material.find("color")
        if color is None or color.get("rgba") is None:
            continue
        colors[name] = _floats(color.get("rgba"), (0.0, 0.0, 0.0, 1.0))
    return colors


def _parse_geometry(node, prefix: str) -> Optional[Geometry]:
    for child in node:
        if not isinstance(child.tag, str):
            continue
        if child.tag == "mesh":
            raw = child.get("filename")
            if not raw:
                logger.warning("<mesh> missing filename")
                return None
            filename = resolve_filename(raw, prefix)
            ext = filename.rsplit(".", 1)[-1].lower()
            if ext not in MESH_TYPES:
                raise URDFParseError(f"Unknown mesh extension: {ext}")
            scale = _floats(child.get("scale"), (1.0, 1.0, 1.0))
            return Geometry(kind="mesh", filename=filename, mesh_type=ext, scale=scale)
        if child.tag == "box":
            return Geometry(kind="box", size=_floats(child.get("size"), (0.0, 0.0, 0.0)))
        if child.tag == "cylinder":
            return Geometry(kind="cylinder",
                            radius=_number(child.get("radius", 0.0)),
                            length=_number(child.get("length", 0.0)))
        if child.tag == "sphere":
            return Geometry(kind="sphere", radius=_number(child.get("radius", 0.0)))
        logger.warning("Unsupported geometry <%s>", child.tag)
    return None


def _parse_visual(node, colors, prefix: str) -> Visual:
    geometry = None
    xyz = (0.0, 0.0, 0.0)
    rpy = (0.0, 0.0, 0.0)
    rgba = None
    for child in node:
        if not isinstance(child.tag, str):
            continue  # comments
        if child.tag == "geometry":
            geometry = _parse_geometry(child, prefix)
        elif child.tag == "origin":
            xyz = _floats(child.get("xyz"), xyz)
            rpy = _floats(child.get("rpy"), rpy)
        elif child.tag == "material":
            color = child.find("color")
            if color is not None and color.get("rgba") is not None:
                rgba = _floats(color.get("rgba"), (0.0, 0.0, 0.0, 1.0))
            elif child.get("name") is not None:
                rgba = colors.get(child.get("name"))
        else:
            logger.warning("Unknown child node: %s", child.tag)
    return Visual(geometry=geometry, origin_xyz=xyz, origin_rpy=rpy, color_rgba=rgba)


def _parse_links(root, colors, prefix: str) -> Dict[str, Link]:
    links: Dict[str, Link] = {}
    for link in root.findall("link"):
        name = link.get("name")
        if name is None:
            logger.error("Link without a name at line %s", link.sourceline)
            continue
        links[name] = Link(
            name=name,
            visuals=tuple(_parse_visual(v, colors, prefix) for v in link.findall("visual")),
            collisions=tuple(_parse_visual(c, colors, prefix) for c in link.findall("collision")),
        )
    return links


def _parse_joints(root, links: Dict[str, Link]) -> List[Joint]:
    joints = []
    for joint in root.findall("joint"):
        if joint.get("name") is None or joint.get("type") is None:
            logger.warning("Joint without a name or type at line %s, skipped", joint.sourceline)
            continue

        parents = joint.findall("parent")
        children = joint.findall("child")
        if len(parents) != 1 or len(children) != 1:
            logger.warning("Joint '%s' without exactly one <parent> or <child>, skipped",
                           joint.get("name"))
            continue

        parent_name = parents[0].get("link")
        child_name = children[0].get("link")
        if parent_name not in links or child_name not in links:
            raise URDFParseError(
                f"Joint '{joint.get('name')}' references missing link: {parent_name} or {child_name}"
            )

        xyz = (0.0, 0.0, 0.0)
        rpy = (0.0, 0.0, 0.0)
        origin = joint.find("origin")
        if origin is not None:
            xyz = _floats(origin.get("xyz"), xyz)
            rpy = _floats(origin.get("rpy"), rpy)

        axis = (0.0, 0.0, 1.0)
        axis_elem = joint.find("axis")
        if axis_elem is not None:
            axis = _floats(axis_elem.get("xyz"), axis)

        limit = None
        limit_elem = joint.find("limit")
        if limit_elem is not None:
            limit = JointLimit(
                lower=_optional_float(limit_elem.get("lower")),
                upper=_optional_float(limit_elem.get("upper")),
                effort=_number(limit_elem.get("effort", 0.0)),
                velocity=_number(limit_elem.get("velocity", 0.0)),
            )

        joints.append(Joint(
            name=joint.get("name"),
            type=joint.get("type"),
            parent=parent_name,
            child=child_name,
            origin_xyz=xyz,
            origin_rpy=rpy,
            axis=axis,
            limit=limit,
        ))
    return joints


def _build_model(name: str, links: Dict[str, Link], joints: List[Joint],
                 colors: Dict[str, Tuple[float, ...]]) -> RobotModel:
    child_links = {joint.child for joint in joints}
    root_links = [link for link in links if link not in child_links]
    if len(root_links) != 1:
        raise URDFParseError(f"Expected exactly one root link, found: {root_links}")
    root_link = root_links[0]

    # Breadth-first order from the root
    ordered_links = []
    queue = deque([root_link])
    visited = set()
    while queue:
        current = queue.popleft()
        if current in visited:
            continue
        visited.add(current)
        ordered_links.append(current)
        for joint in joints:
            if joint.parent == current and joint.child not in visited:
                queue.append(joint.child)

    link_index = {link: i for i, link in enumerate(ordered_links)}
    joint_by_child = {joint.child: joint for joint in joints}

    parent_indices = []
    joint_transforms = []
    joint_axes = []
    for i, link in enumerate(ordered_links):
        joint = joint_by_child.get(link)
        if joint is None:
            # Root parents itself, identity transform, no motion
            parent_indices.append(i)
            joint_transforms.append(jnp.eye(4))
            joint_axes.append(jnp.zeros(6))
            continue

        parent_indices.append(link_index[joint.parent])
        joint_transforms.append(se3.from_position_and_rotation(
            jnp.array(joint.origin_xyz), so3.from_rpy(jnp.array(joint.origin_rpy))
        ))

        axis = np.array(joint.axis)
        if joint.type in ("revolute", "continuous"):
            joint_axes.append(jnp.concatenate([jnp.zeros(3), jnp.array(axis)]))
        elif joint.type == "prismatic":
            joint_axes.append(jnp.concatenate([jnp.array(axis), jnp.zeros(3)]))
        else:
            joint_axes.append(jnp.zeros(6))

    actuated = [joint for joint in joints if joint.is_actuated]
    # Joints unreachable from the root (cycles) have no link slot
    actuated_idx = [link_index.get(joint.child, 0) for joint in actuated]

    return RobotModel(
        name=name,
        links=tuple(links.values()),
        joints=tuple(joints),
        link_names=tuple(ordered_links),
        joint_names=tuple(joint.name for joint in actuated),
        colors=tuple(colors.items()),
        parent_indices=jnp.array(parent_indices, dtype=jnp.int32),
        joint_transforms=jnp.stack(joint_transforms),
        joint_axes=jnp.stack(joint_axes),
        actuated_joint_to_link_idx=jnp.array(actuated_idx, dtype=jnp.int32),
    )
