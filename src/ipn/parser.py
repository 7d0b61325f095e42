import codecs
import re
from urllib.parse import unquote_to_bytes

# key is one or more ASCII word characters, value is everything after the
# first "=" (may be empty, may contain further "=" or newlines)
_SEGMENT = re.compile(rb"(\w+)=(.*)", re.DOTALL)

DEFAULT_CHARSET = "utf-8"


def _charset(pairs: list[tuple[bytes, bytes]]) -> str:
    """The codec named by the body's own ``charset`` field, if Python knows it."""
    name = DEFAULT_CHARSET
    for key, value in pairs:
        if key == b"charset":
            name = _unquote(value).decode("ascii", errors="replace").strip()
    try:
        # rejects unknown names and bytes-to-bytes codecs such as "base64"
        b"".decode(name)
        return codecs.lookup(name).name
    except LookupError:
        return DEFAULT_CHARSET


def _unquote(value: bytes) -> bytes:
    return unquote_to_bytes(value.replace(b"+", b" "))


def parse_form_body(raw: bytes | str) -> dict[str, str]:
    """Parse a form-encoded notification body into a field mapping.

    Segments that are not ``key=value`` with a word-character key are
    skipped without error. A repeated key keeps its last value.

    Values are percent-decoded to bytes and then decoded with the codec
    named in the body's ``charset`` field (the processor often sends
    ``windows-1252``), falling back to UTF-8. Bytes invalid in that codec
    become U+FFFD; the raw body is never touched.
    """
    if isinstance(raw, str):
        raw = raw.encode("utf-8")

    pairs = []
    for segment in raw.split(b"&"):
        match = _SEGMENT.fullmatch(segment)
        if match is None:
            continue
        pairs.append(match.groups())

    charset = _charset(pairs)
    fields: dict[str, str] = {}
    for key, value in pairs:
        fields[key.decode("ascii")] = _unquote(value).decode(charset, errors="replace")
    return fields
