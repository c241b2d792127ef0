from canvas_mcp.core.links import next_link, parse_link_header

BASE = "https://canvas.test/api/v1"


def test_parse_link_header_maps_rel_to_url():
    header = (
        f'<{BASE}/courses?page=2&per_page=100>; rel="next", '
        f'<{BASE}/courses?page=1&per_page=100>; rel="first", '
        f'<{BASE}/courses?page=5&per_page=100>; rel="last"'
    )

    links = parse_link_header(header)

    assert links == {
        "next": f"{BASE}/courses?page=2&per_page=100",
        "first": f"{BASE}/courses?page=1&per_page=100",
        "last": f"{BASE}/courses?page=5&per_page=100",
    }


def test_parse_link_header_accepts_unquoted_rel():
    links = parse_link_header(f"<{BASE}/x?page=3>; rel=next")
    assert links == {"next": f"{BASE}/x?page=3"}


def test_parse_link_header_skips_parts_without_rel():
    links = parse_link_header(f'<{BASE}/x?page=1>, <{BASE}/x?page=2>; rel="next"')
    assert links == {"next": f"{BASE}/x?page=2"}


def test_parse_link_header_last_duplicate_wins():
    links = parse_link_header(f'<{BASE}/a>; rel="next", <{BASE}/b>; rel="next"')
    assert links["next"] == f"{BASE}/b"


def test_parse_link_header_empty():
    assert parse_link_header(None) == {}
    assert parse_link_header("") == {}


def test_next_link():
    assert next_link(f'<{BASE}/a?page=2>; rel="next"') == f"{BASE}/a?page=2"
    assert next_link(f'<{BASE}/a?page=1>; rel="first"') is None
    assert next_link(None) is None
