"""Transfer-encoding, charset and header-word codecs.

Nothing in this package knows about MIME structure.
"""

from termail.codec.charset import (
    DEFAULT_FALLBACK,
    bytes_to_text,
    can_encode,
    normalize_charset,
    text_codec,
)
from termail.codec.headers import decode_header_word, encode_header_word
from termail.codec.transfer import (
    BASE64,
    QUOTED_PRINTABLE,
    SEVEN_BIT,
    choose_transfer_encoding,
    decode_body,
    encode_body,
    normalize_transfer_encoding,
)

__all__ = [
    "BASE64",
    "DEFAULT_FALLBACK",
    "QUOTED_PRINTABLE",
    "SEVEN_BIT",
    "bytes_to_text",
    "can_encode",
    "choose_transfer_encoding",
    "decode_body",
    "decode_header_word",
    "encode_body",
    "encode_header_word",
    "normalize_charset",
    "normalize_transfer_encoding",
    "text_codec",
]
