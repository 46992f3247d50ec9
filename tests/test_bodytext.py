from sitecrawler.bodytext import extract_body_text

SAMPLE = (
    "<!DOCTYPE html><html><head><title>My Title</title></head>"
    "<body><h1>Heading</h1><p>Paragraph</p><div>whoops</div></body></html>"
)


def test_sample_document():
    assert extract_body_text(SAMPLE.encode()) == "Heading Paragraph whoops "


def test_accepts_str():
    assert extract_body_text(SAMPLE) == extract_body_text(SAMPLE.encode())


def test_title_outside_body_is_ignored():
    assert "My Title" not in extract_body_text(SAMPLE)


def test_text_after_body_close_is_ignored():
    result = extract_body_text("<body><p>inside</p></body>outside")
    assert result == "inside "


def test_no_body_gives_empty_text():
    assert extract_body_text("<html><head><title>x</title></head></html>") == ""


def test_entities_are_decoded():
    assert extract_body_text("<body>a &amp; b</body>") == "a & b "


def test_empty_input():
    assert extract_body_text(b"") == ""