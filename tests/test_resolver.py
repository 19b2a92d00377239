"""Tests for retrieval resolution."""

import pytest

from fragments.exceptions import UnknownExtensionError, UnsupportedConversionError, UnsupportedMediaTypeError
from fragments.fragment import Fragment
from fragments.resolver import Resolution, RetrievalResolver


@pytest.fixture
def resolver(registry):
    return RetrievalResolver(registry)


def _fragment(fragment_type):
    return Fragment(owner_id="owner", type=fragment_type, id="frag-1")


class TestPassthrough:
    """Test cases that serve the stored bytes unchanged."""

    def test_no_extension_keeps_stored_type(self, resolver):
        fragment = _fragment("text/plain; charset=utf-8")
        assert resolver.resolve(fragment) == Resolution(target_type="text/plain; charset=utf-8", convert=False)

    def test_empty_extension(self, resolver):
        assert resolver.resolve(_fragment("text/html"), "") == Resolution("text/html", False)

    def test_matching_extension_keeps_charset(self, resolver):
        fragment = _fragment("text/markdown; charset=utf-8")
        assert resolver.resolve(fragment, ".md") == Resolution("text/markdown; charset=utf-8", False)

    @pytest.mark.parametrize("extension", [".jpg", ".jpeg", ".JPG"])
    def test_jpeg_extension_variants(self, resolver, extension):
        assert resolver.resolve(_fragment("image/jpeg"), extension).convert is False

    def test_yml_alias_fragment_served_as_yaml(self, resolver):
        assert resolver.resolve(_fragment("application/yml"), ".yaml").convert is False


class TestConversion:
    """Test cases that require conversion."""

    def test_markdown_to_html(self, resolver):
        assert resolver.resolve(_fragment("text/markdown"), ".html") == Resolution("text/html", True)

    def test_converted_type_has_no_charset(self, resolver):
        resolution = resolver.resolve(_fragment("text/csv; charset=utf-8"), ".json")
        assert resolution == Resolution("application/json", True)

    def test_image_conversion(self, resolver):
        assert resolver.resolve(_fragment("image/png"), ".webp") == Resolution("image/webp", True)


class TestRejections:
    """Test unknown extensions and disallowed conversions."""

    def test_unknown_extension(self, resolver):
        with pytest.raises(UnknownExtensionError) as exc_info:
            resolver.resolve(_fragment("text/plain"), ".xyz")
        assert str(exc_info.value) == "Unsupported extension '.xyz' requested for fragment frag-1"

    def test_disallowed_conversion(self, resolver):
        with pytest.raises(UnsupportedConversionError) as exc_info:
            resolver.resolve(_fragment("text/plain; charset=utf-8"), ".html")
        assert str(exc_info.value) == (
            "Conversion from text/plain to text/html is not permitted. Allowed conversions: text/plain"
        )

    def test_text_to_image_is_rejected(self, resolver):
        with pytest.raises(UnsupportedConversionError, match="Allowed conversions: text/markdown, text/html, text/plain"):
            resolver.resolve(_fragment("text/markdown"), ".png")

    def test_both_rejections_share_a_base(self):
        assert issubclass(UnknownExtensionError, UnsupportedMediaTypeError)
        assert issubclass(UnsupportedConversionError, UnsupportedMediaTypeError)
