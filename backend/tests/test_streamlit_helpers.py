"""Small formatting helpers from the Streamlit app."""

from pathlib import Path
import sys

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from streamlit_app import _download_name, _extension_for, _segment_label  # noqa: E402


def test_download_names():
    assert _download_name("video") == "synthv-video.mp4"
    assert _download_name("generated-image", 2, "jpeg") == "synthv-generated-image-2.jpeg"


def test_extension_for_known_and_unknown_types():
    assert _extension_for("image/png") == "png"
    assert _extension_for("application/octet-stream") == "bin"


def test_segment_label_uses_short_id():
    assert _segment_label("abcdef0123") == "Segment abcd"
