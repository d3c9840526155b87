from urllib.parse import unquote


def parse_cookie_header(header: str | None) -> dict[str, str]:
    """Parse a ``Cookie`` header into a name -> percent-decoded value map.

    Pairs without ``=`` or with an empty name are skipped. The first pair wins
    when a name repeats.
    """
    cookies: dict[str, str] = {}
    if not header:
        return cookies

    for pair in header.split(';'):
        name, separator, value = pair.strip().partition('=')
        name = name.strip()
        if not separator or not name or name in cookies:
            continue
        cookies[name] = unquote(value.strip())

    return cookies


def get_session_id(header: str | None, cookie_name: str) -> str | None:
    return parse_cookie_header(header).get(cookie_name) or None
