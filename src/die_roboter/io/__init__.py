"""Loading robot descriptions.

This module parses URDF documents from memory, disk or HTTP into RobotModel
instances.
"""

from .urdf_parser import URDFParseError, fetch_urdf, load_urdf, parse_urdf, resolve_filename

__all__ = ["load_urdf", "parse_urdf", "fetch_urdf", "resolve_filename", "URDFParseError"]
