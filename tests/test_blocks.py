import pytest

from post_image_downloader.blocks import find_blocks, get_attribute, set_attribute, splice_blocks
from helpers import NO_IMAGE_BLOCKS, TWO_IMAGE_BLOCKS


def test_finds_multiple_image_blocks() -> None:
    blocks = find_blocks("wp:image", TWO_IMAGE_BLOCKS)
    assert len(blocks) == 2
    assert blocks[0].start < blocks[1].start
    assert all(block.html.endswith("<!-- /wp:image -->") for block in blocks)


def test_finds_no_blocks_when_none_exist() -> None:
    assert find_blocks("wp:image", NO_IMAGE_BLOCKS) == []
    assert find_blocks("wp:image", "") == []


def test_block_name_must_match_exactly() -> None:
    content = '<!-- wp:image-gallery {"id":1} -->\n<p/>\n<!-- /wp:image-gallery -->'
    assert find_blocks("wp:image", content) == []


def test_matching_tolerates_case_and_whitespace() -> None:
    content = '<!--   WP:Image {"id":9} -->\n<img src="a.jpg"/>\n<!--  /wp:image   -->'
    blocks = find_blocks("wp:image", content)
    assert len(blocks) == 1
    assert get_attribute(blocks[0].html, "id") == 9


def test_block_view_round_trips_byte_for_byte() -> None:
    blocks = find_blocks("wp:image", TWO_IMAGE_BLOCKS)
    for block in blocks:
        assert TWO_IMAGE_BLOCKS[block.start : block.end] == block.html
    assert splice_blocks(TWO_IMAGE_BLOCKS, [(block, block.html) for block in blocks]) == TWO_IMAGE_BLOCKS


def test_block_view_exposes_parts() -> None:
    block = find_blocks("wp:image", TWO_IMAGE_BLOCKS)[0]
    assert block.opening_line == '<!-- wp:image {"id":2,"sizeSlug":"large","linkDestination":"none"} -->'
    assert block.attributes == {"id": 2, "sizeSlug": "large", "linkDestination": "none"}
    assert block.inner_html.strip().startswith('<figure class="wp-block-image size-large">')


def test_gets_block_attribute_value() -> None:
    block = find_blocks("wp:image", TWO_IMAGE_BLOCKS)[0]
    assert get_attribute(block.html, "id") == 2
    assert get_attribute(block.html, "sizeSlug") == "large"


def test_missing_attribute_is_none() -> None:
    block = find_blocks("wp:image", TWO_IMAGE_BLOCKS)[0]
    assert get_attribute(block.html, "someRandomAttribute") is None


def test_block_without_attributes_reads_none() -> None:
    block_html = "<!-- wp:image -->\n<figure><img src=\"a.jpg\"/></figure>\n<!-- /wp:image -->"
    assert get_attribute(block_html, "id") is None


def test_attributes_are_read_from_opening_comment_only() -> None:
    block_html = '<!-- wp:image {"id":3} --><figure><img src="a.jpg" data-x="{}"/></figure><!-- /wp:image -->'
    assert get_attribute(block_html, "id") == 3


def test_malformed_attributes_read_as_none() -> None:
    block_html = '<!-- wp:image {"id":3,} -->\n<img src="a.jpg"/>\n<!-- /wp:image -->'
    assert get_attribute(block_html, "id") is None
    with pytest.raises(ValueError):
        set_attribute(block_html, "id", 4)


def test_updates_block_attribute() -> None:
    block = find_blocks("wp:image", TWO_IMAGE_BLOCKS)[0]
    updated = set_attribute(block.html, "id", 123)
    lines = updated.split("\n")
    assert lines[0] == '<!-- wp:image {"id":123,"sizeSlug":"large","linkDestination":"none"} -->'
    assert lines[1:] == block.html.split("\n")[1:]


def test_adds_block_attribute_last() -> None:
    block = find_blocks("wp:image", TWO_IMAGE_BLOCKS)[0]
    updated = set_attribute(block.html, "customAttr", 123)
    assert updated.split("\n")[0] == (
        '<!-- wp:image {"id":2,"sizeSlug":"large","linkDestination":"none","customAttr":123} -->'
    )


def test_inserts_attributes_when_block_has_none() -> None:
    block_html = "<!-- wp:image -->\n<figure><img src=\"a.jpg\"/></figure>\n<!-- /wp:image -->"
    updated = set_attribute(block_html, "id", 7)
    assert updated == '<!-- wp:image {"id":7} -->\n<figure><img src="a.jpg"/></figure>\n<!-- /wp:image -->'


def test_nested_attribute_values_survive_update() -> None:
    block_html = '<!-- wp:image {"id":1,"style":{"border":{"radius":"4px"}}} -->\n<img src="a.jpg"/>\n<!-- /wp:image -->'
    updated = set_attribute(block_html, "id", 2)
    assert updated.split("\n")[0] == '<!-- wp:image {"id":2,"style":{"border":{"radius":"4px"}}} -->'


def test_splice_replaces_only_target_blocks() -> None:
    blocks = find_blocks("wp:image", TWO_IMAGE_BLOCKS)
    second = blocks[1]
    content = splice_blocks(TWO_IMAGE_BLOCKS, [(second, set_attribute(second.html, "id", 50))])

    assert '{"id":2,' in content
    assert '{"id":50,' in content
    assert content.count("<p>some text</p>") == 2
    assert content.replace('{"id":50,', '{"id":5,') == TWO_IMAGE_BLOCKS


def test_update_keeps_editor_escapes_in_other_values() -> None:
    block_html = (
        '<!-- wp:image {"id":2,"className":"is-style-a \\u002d\\u002d\\u003e b",'
        '"caption":"\\u003cem\\u003eTom \\u0026 \\u0022Jerry\\u0022\\u003c/em\\u003e"} -->\n'
        '<img src="a.jpg"/>\n<!-- /wp:image -->'
    )
    updated = set_attribute(block_html, "id", 3)

    assert updated == block_html.replace('{"id":2,', '{"id":3,', 1)
    assert get_attribute(updated, "id") == 3
    assert get_attribute(updated, "className") == "is-style-a --> b"
    assert find_blocks("wp:image", updated)[0].html == updated


def test_new_values_are_escaped_like_the_editor() -> None:
    block_html = '<!-- wp:image {"id":2} -->\n<img src="a.jpg"/>\n<!-- /wp:image -->'
    updated = set_attribute(block_html, "alt", 'a --> <b> & "c" \\')

    assert updated.split("\n")[0] == (
        '<!-- wp:image {"id":2,"alt":"a \\u002d\\u002d\\u003e \\u003cb\\u003e \\u0026 \\u0022c\\u0022 \\\\"} -->'
    )
    assert get_attribute(updated, "alt") == 'a --> <b> & "c" \\'
