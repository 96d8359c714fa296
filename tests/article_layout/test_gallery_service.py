# tests/article_layout/test_gallery_service.py
import pytest

from article_layout.services.gallery_service import GalleryService, group_galleries


def img(name: str) -> str:
    return f'<img src="{name}.png"/>'


def gallery(*items: str) -> str:
    inner = "".join(f'<div class="article-gallery__item">{item}</div>' for item in items)
    return f'<div class="article-gallery" data-count="{len(items)}">{inner}</div>'


def test_three_images_become_one_gallery():
    """Drie opeenvolgende afbeeldingen worden één galerij met drie items."""
    html = img("a") + img("b") + img("c")
    assert group_galleries(html) == gallery(img("a"), img("b"), img("c"))


def test_five_images_stay_unwrapped():
    """Vijf afbeeldingen op rij zijn te veel voor een galerij en blijven los."""
    html = "".join(img(n) for n in "abcde")
    assert group_galleries(html) == html


def test_single_image_stays_unwrapped():
    html = "<p>intro</p>" + img("a") + "<p>outro</p>"
    assert group_galleries(html) == html


@pytest.mark.parametrize("count", [2, 4])
def test_gallery_size_bounds(count):
    images = [img(f"i{n}") for n in range(count)]
    assert group_galleries("".join(images)) == gallery(*images)


def test_wrapped_images_and_surrounding_content():
    """Containers met één afbeelding tellen mee; tekstblokken eromheen blijven op hun plek."""
    a = '<p><img src="a.png"/></p>'
    b = '<figure><img src="b.png"/></figure>'
    html = "<h2>Screens</h2>" + a + b + "<p>Text</p>" + img("c") + img("d")

    expected = "<h2>Screens</h2>" + gallery(a, b) + "<p>Text</p>" + gallery(img("c"), img("d"))
    assert group_galleries(html) == expected


def test_tables_and_captioned_images_break_a_run():
    caption = '<p><img src="b.png"/> caption</p>'
    html = img("a") + caption + img("c")
    assert group_galleries(html) == html


@pytest.mark.parametrize("html", ["", "   ", "<!-- only a comment -->"])
def test_blank_or_blockless_input_is_unchanged(html):
    assert group_galleries(html) == html


def test_custom_bounds():
    service = GalleryService(min_size=2, max_size=6)
    images = [img(n) for n in "abcde"]
    assert service.group_galleries("".join(images)) == gallery(*images)
