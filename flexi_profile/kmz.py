"""Reading pipeline traces out of Google-Earth KMZ containers.

A KMZ is a zip archive holding one or more KML documents. The trace is the
first ``LineString`` carrying coordinates, written by Google Earth as
whitespace-separated ``lon,lat[,alt]`` tuples.
"""
from __future__ import annotations

import io
import logging
import math
import zipfile
import zlib
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np
from lxml import etree as ET

from .errors import EmptyTraceError, InvalidTraceError
from .geo import haversine_m
from .types import ParsedTrace, RawCoordinate, TraceMetadata, ValidationResult

logger = logging.getLogger(__name__)

# Google Earth writes altitude 0 on every vertex when it has no terrain data
ELEVATION_ZERO_THRESHOLD_M = 0.1

_ZIP_ERRORS = (zipfile.BadZipFile, zipfile.LargeZipFile, zlib.error, EOFError,
               OSError, RuntimeError, NotImplementedError)


def _xml_parser() -> ET.XMLParser:
    # lxml parsers must not be shared between threads
    return ET.XMLParser(resolve_entities=False, no_network=True, remove_comments=True)


def _kml_members(z: zipfile.ZipFile) -> List[str]:
    return [n for n in z.namelist() if n.lower().endswith(".kml")]


def _open_kml(container) -> Tuple[ValidationResult, Optional[ET._Element]]:
    warnings: List[str] = []
    if not isinstance(container, (bytes, bytearray, memoryview)):
        return ValidationResult(False, (f"Invalid file type: expected bytes, got {type(container).__name__}",)), None
    if len(container) == 0:
        return ValidationResult(False, ("KMZ file is empty",)), None

    try:
        with zipfile.ZipFile(io.BytesIO(container)) as z:
            kml_names = _kml_members(z)
            if not kml_names:
                return ValidationResult(False, ("KMZ file does not contain a .kml file",)), None
            if len(kml_names) > 1:
                warnings.append(f"Multiple KML files found ({len(kml_names)}). Using first one: {kml_names[0]}")
            data = z.read(kml_names[0])
    except _ZIP_ERRORS as e:
        return ValidationResult(False, (f"File validation failed: {e}",), tuple(warnings)), None

    try:
        root = ET.fromstring(data, _xml_parser())
    except ET.XMLSyntaxError as e:
        logger.debug(f"KML syntax error: {e}")
        return ValidationResult(False, ("KML file contains invalid XML",), tuple(warnings)), None

    return ValidationResult(True, (), tuple(warnings)), root


def validate(container) -> ValidationResult:
    """Check that ``container`` is a zip holding a well-formed KML. Never raises."""
    result, _ = _open_kml(container)
    return result


def _parse_tuple(chunk: str) -> Optional[RawCoordinate]:
    parts = chunk.split(",")
    if len(parts) < 2:
        return None
    try:
        lon = float(parts[0])
        lat = float(parts[1])
    except ValueError:
        return None
    if not (math.isfinite(lon) and math.isfinite(lat)):
        return None
    alt = 0.0
    if len(parts) > 2 and parts[2].strip():
        try:
            alt = float(parts[2])
        except ValueError:
            alt = 0.0
        if not math.isfinite(alt):
            alt = 0.0
    return RawCoordinate(latitude=lat, longitude=lon, altitude=alt)


def _first_path_text(root: ET._Element) -> Optional[str]:
    for node in root.xpath('//*[local-name()="LineString"]/*[local-name()="coordinates"]'):
        if node.text and node.text.strip():
            return node.text
    return None


def _child_text(element: Optional[ET._Element], name: str) -> Optional[str]:
    if element is None:
        return None
    found = element.xpath(f'./*[local-name()="{name}"]')
    if not found or found[0].text is None:
        return None
    text = found[0].text.strip()
    return text or None


def _metadata(root: ET._Element) -> TraceMetadata:
    placemarks = root.xpath('//*[local-name()="Placemark"]')
    documents = root.xpath('//*[local-name()="Document"]')
    placemark = placemarks[0] if placemarks else None
    document = documents[0] if documents else None
    return TraceMetadata(
        name=_child_text(placemark, "name") or _child_text(document, "name"),
        description=_child_text(placemark, "description") or _child_text(document, "description"),
    )


def has_elevations(coordinates: Sequence[RawCoordinate]) -> bool:
    """True when altitudes are non-zero somewhere AND vary along the trace."""
    if not coordinates:
        return False
    alts = np.array([c.altitude or 0.0 for c in coordinates], dtype=float)
    if not np.any(np.abs(alts) > ELEVATION_ZERO_THRESHOLD_M):
        return False
    return bool(np.any(np.abs(alts - alts[0]) > ELEVATION_ZERO_THRESHOLD_M))


def calculate_distance(coordinates: Sequence[RawCoordinate]) -> float:
    if len(coordinates) < 2:
        return 0.0
    total = 0.0
    for prev, curr in zip(coordinates, coordinates[1:]):
        total += haversine_m(prev.latitude, prev.longitude, curr.latitude, curr.longitude)
    return total


def parse(container) -> ParsedTrace:
    validation, root = _open_kml(container)
    if not validation.is_valid:
        msg = f"Invalid KMZ file: {', '.join(validation.errors)}"
        logger.error(msg)
        raise InvalidTraceError(msg)
    for w in validation.warnings:
        logger.warning(w)

    text = _first_path_text(root)
    if text is None:
        raise EmptyTraceError("No LineString coordinates found in KML")

    coords: List[RawCoordinate] = []
    for chunk in text.split():
        coord = _parse_tuple(chunk)
        if coord is None:
            logger.warning(f"Skipping invalid coordinate: {chunk}")
            continue
        coords.append(coord)

    if not coords:
        raise EmptyTraceError("No valid coordinates found in KMZ file")

    result = ParsedTrace(
        coordinates=tuple(coords),
        has_elevations=has_elevations(coords),
        total_distance_m=calculate_distance(coords),
        metadata=_metadata(root),
        warnings=validation.warnings,
    )
    logger.info(
        f"Parsed trace: {len(coords)} points, {result.total_distance_m:.1f} m, "
        f"elevations in file: {result.has_elevations}"
    )
    return result


def parse_file(path: Union[str, Path]) -> ParsedTrace:
    """Parse a ``.kmz`` from disk. A bare ``.kml`` is zipped in memory first."""
    path = Path(path)
    logger.debug(f"Processing file: {path}")
    data = path.read_bytes()
    if path.suffix.lower() == ".kml":
        buf = io.BytesIO()
        with zipfile.ZipFile(buf, "w", zipfile.ZIP_DEFLATED) as z:
            z.writestr("doc.kml", data)
        data = buf.getvalue()
    return parse(data)
