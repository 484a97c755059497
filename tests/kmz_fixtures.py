import io
import zipfile

KML_NS = "http://www.opengis.net/kml/2.2"


def make_kml(coordinates, name="Line 1", namespace=KML_NS, description=None):
    """KML text with one Placemark/LineString. ``coordinates`` are (lon, lat[, alt]) tuples or raw strings."""
    tuples = " ".join(c if isinstance(c, str) else ",".join(str(v) for v in c) for c in coordinates)
    xmlns = f' xmlns="{namespace}"' if namespace else ""
    desc = f"<description>{description}</description>" if description else ""
    return (
        f'<?xml version="1.0" encoding="UTF-8"?>\n'
        f"<kml{xmlns}><Document><name>Doc</name>"
        f"<Placemark><name>{name}</name>{desc}"
        f"<LineString><coordinates>{tuples}</coordinates></LineString>"
        f"</Placemark></Document></kml>"
    )


def make_kmz(*members):
    """Zip bytes from (name, text) pairs; a bare string becomes ``doc.kml``."""
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", zipfile.ZIP_DEFLATED) as z:
        for m in members:
            if isinstance(m, str):
                m = ("doc.kml", m)
            z.writestr(m[0], m[1])
    return buf.getvalue()


# three points heading north along a meridian, terrain falling
SLOPED = [(-58.0, -34.000, 545.0), (-58.0, -34.005, 500.0), (-58.0, -34.010, 450.0)]
FLAT_ZERO = [(-58.0, -34.000, 0.0), (-58.0, -34.005, 0.0), (-58.0, -34.010, 0.0)]
