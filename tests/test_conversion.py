"""Tests for format conversion."""

import io
import json

import pytest
import yaml
from PIL import Image

from fragments.conversion import FormatConverter, csv_to_records, decode_text
from fragments.exceptions import ConversionError, UnsupportedConversionError
from fragments.type_registry import FragmentType, default_registry
from fragments.validation import ContentValidator
from helpers import AVIF_SUPPORTED, make_image, make_oversized_gif

SAMPLES = {
    FragmentType.TEXT_PLAIN: b"hello world",
    FragmentType.TEXT_MARKDOWN: b"# Title\n\nSome *text*.",
    FragmentType.TEXT_HTML: b"<p>hello</p>",
    FragmentType.TEXT_CSV: b"name,age\nJohn,30\nJane,25\n",
    FragmentType.APPLICATION_JSON: b'{"name": "fragments", "tags": ["a", "b"]}',
    FragmentType.APPLICATION_YAML: b"name: fragments\ntags:\n- a\n- b\n",
}

PILLOW_NAMES = {
    FragmentType.IMAGE_PNG: "PNG",
    FragmentType.IMAGE_JPEG: "JPEG",
    FragmentType.IMAGE_WEBP: "WEBP",
    FragmentType.IMAGE_AVIF: "AVIF",
    FragmentType.IMAGE_GIF: "GIF",
}


def _conversion_pairs():
    registry = default_registry()
    pairs = []
    for source, targets in registry.conversions.items():
        for target in targets:
            marks = []
            if FragmentType.IMAGE_AVIF in (source, target) and not AVIF_SUPPORTED:
                marks.append(pytest.mark.skip(reason="Pillow built without AVIF support"))
            pairs.append(pytest.param(source, target, id=f"{source.value}->{target.value}", marks=marks))
    return pairs


def _sample(fragment_type):
    if fragment_type in PILLOW_NAMES:
        return make_image(PILLOW_NAMES[fragment_type])
    return SAMPLES[fragment_type]


@pytest.fixture
def converter(registry):
    return FormatConverter(registry)


class TestTextConversions:
    """Test conversions between text representations."""

    def test_csv_to_json(self, converter):
        result = converter.convert(b"name,age\nJohn,30\nJane,25", "text/csv", "application/json")
        assert result == b'[{"name":"John","age":"30"},{"name":"Jane","age":"25"}]'

    def test_csv_short_rows(self):
        assert csv_to_records("a,b,c\n1,2\n\n4,5,6,7\n") == [
            {"a": "1", "b": "2"},
            {"a": "4", "b": "5", "c": "6"},
        ]

    def test_csv_header_only(self):
        assert csv_to_records("a,b\n") == []
        assert csv_to_records("") == []

    def test_markdown_to_html(self, converter):
        result = converter.convert(b"# Title", "text/markdown", "text/html")
        assert result == b"<h1>Title</h1>\n"

    def test_markdown_to_html_with_charset(self, converter):
        result = converter.convert(b"*hi*", "text/markdown; charset=utf-8", "text/html")
        assert result == b"<p><em>hi</em></p>\n"

    def test_markdown_to_plain_is_raw_text(self, converter):
        assert converter.convert(b"# Title", "text/markdown", "text/plain") == b"# Title"

    def test_html_to_plain_keeps_markup(self, converter):
        assert converter.convert(b"<p>hello</p>", "text/html", "text/plain") == b"<p>hello</p>"

    def test_invalid_utf8_is_replaced(self, converter):
        result = converter.convert(b"ok \xff", "text/html", "text/plain")
        assert result.decode("utf-8") == "ok \ufffd"

    def test_decode_text_passes_strings_through(self):
        assert decode_text("already text") == "already text"


class TestStructuredConversions:
    """Test JSON and YAML conversions."""

    def test_json_to_plain_is_pretty_printed(self, converter):
        result = converter.convert(b'{"a":1,"b":[1,2]}', "application/json", "text/plain")
        assert result == b'{\n  "a": 1,\n  "b": [\n    1,\n    2\n  ]\n}'

    def test_json_to_yaml(self, converter):
        result = converter.convert(b'{"b": 1, "a": [1, 2]}', "application/json", "application/yaml")
        assert yaml.safe_load(result) == {"b": 1, "a": [1, 2]}
        assert result.startswith(b"b: 1\n")

    def test_yaml_to_plain(self, converter):
        result = converter.convert(b"a:   1\nb: two\n", "application/yaml", "text/plain")
        assert result == b"a: 1\nb: two\n"

    def test_json_to_plain_failure(self, converter):
        with pytest.raises(ConversionError, match="Failed to convert to plain text"):
            converter.convert(b"{broken", "application/json", "text/plain")

    def test_json_to_yaml_failure(self, converter):
        with pytest.raises(ConversionError, match="Failed to convert JSON to YAML"):
            converter.convert(b"{broken", "application/json", "application/yaml")

    def test_yaml_to_plain_failure(self, converter):
        with pytest.raises(ConversionError, match="Failed to convert to plain text"):
            converter.convert(b"key: [unclosed", "application/yaml", "text/plain")


class TestImageConversions:
    """Test conversions between image formats."""

    def test_png_to_jpeg(self, converter, png_bytes):
        result = converter.convert(png_bytes, "image/png", "image/jpeg")
        assert result[:2] == b"\xff\xd8"
        with Image.open(io.BytesIO(result)) as image:
            assert image.format == "JPEG"
            assert image.size == (8, 8)

    def test_rgba_to_jpeg_drops_alpha(self, converter):
        rgba = make_image("PNG", mode="RGBA")
        result = converter.convert(rgba, "image/png", "image/jpeg")
        with Image.open(io.BytesIO(result)) as image:
            assert image.mode == "RGB"

    def test_jpeg_to_gif(self, converter, jpeg_bytes):
        result = converter.convert(jpeg_bytes, "image/jpeg", "image/gif")
        assert result.startswith(b"GIF8")

    @pytest.mark.parametrize("target,pillow_format", [
        ("image/png", "PNG"),
        ("image/gif", "GIF"),
        ("image/webp", "WEBP"),
    ])
    def test_cmyk_jpeg_converts(self, converter, target, pillow_format):
        cmyk = make_image("JPEG", mode="CMYK", color=(0, 200, 200, 0))
        result = converter.convert(cmyk, "image/jpeg", target)
        with Image.open(io.BytesIO(result)) as image:
            assert image.format == pillow_format
            assert image.size == (8, 8)

    def test_la_png_to_gif(self, converter):
        result = converter.convert(make_image("PNG", mode="LA", color=(100, 50)), "image/png", "image/gif")
        assert result.startswith(b"GIF8")

    def test_oversized_canvas(self, converter):
        with pytest.raises(ConversionError, match="Failed to convert image"):
            converter.convert(make_oversized_gif(), "image/gif", "image/png")

    def test_corrupt_image(self, converter):
        with pytest.raises(ConversionError, match="Failed to convert image"):
            converter.convert(b"not an image", "image/png", "image/webp")


class TestDispatch:
    """Test the converter table itself."""

    def test_identity_returns_input(self, converter):
        assert converter.convert(b"same", "text/plain", "text/plain") == b"same"

    def test_identity_ignores_parameters(self, converter):
        assert converter.convert(b"same", "text/plain; charset=utf-8", "text/plain") == b"same"

    def test_unknown_target(self, converter):
        with pytest.raises(UnsupportedConversionError, match="currently not supported by the API"):
            converter.convert(b"x", "text/plain", "application/xml")

    def test_missing_source_for_target(self, converter):
        with pytest.raises(UnsupportedConversionError, match="from text/plain to text/html is not supported"):
            converter.convert(b"x", "text/plain", "text/html")

    @pytest.mark.parametrize("source,target", _conversion_pairs())
    def test_every_allowed_conversion_produces_valid_output(self, converter, registry, source, target):
        result = converter.convert(_sample(source), source.value, target.value)
        ContentValidator(registry).validate(result, target.value)

    def test_csv_json_output_is_valid_json(self, converter):
        result = converter.convert(SAMPLES[FragmentType.TEXT_CSV], "text/csv", "application/json")
        assert json.loads(result) == [{"name": "John", "age": "30"}, {"name": "Jane", "age": "25"}]
