from __future__ import annotations

import re

_BINARY_TOKEN_RE = re.compile(r"[01]+")


def encode(text: str) -> str:
    """
    Encode text as space-separated binary code points.

    "{}" -> "1111011 1111101"
    """
    return " ".join(format(ord(ch), "b") for ch in text)


def decode(code: str) -> str:
    """
    Inverse of encode().

    Raises ValueError on tokens that are not plain binary or that name an invalid code point.
    """
    if code == "":
        return ""
    chars: list[str] = []
    for token in code.split(" "):
        if not _BINARY_TOKEN_RE.fullmatch(token):
            raise ValueError(f"invalid binary token: {token!r}")
        try:
            chars.append(chr(int(token, 2)))
        except OverflowError as e:
            raise ValueError(f"code point out of range: {token!r}") from e
    return "".join(chars)


def split(text: str, max_len: int) -> list[str]:
    if max_len < 1:
        raise ValueError("max_len must be >= 1")
    return [text[i : i + max_len] for i in range(0, len(text), max_len)]
