"""Enumerated option values, rendered on the wire exactly as the engine spells them."""

from enum import Enum


class OptionEnum(str, Enum):
    """String-valued enum whose str() is its wire value."""

    def __str__(self) -> str:
        return self.value


class InputType(OptionEnum):
    AUTO = "auto"
    HTML = "html"
    XML = "xml"


class AuthMethod(OptionEnum):
    BASIC = "basic"
    DIGEST = "digest"
    NTLM = "ntlm"
    NEGOTIATE = "negotiate"


class AuthScheme(OptionEnum):
    HTTP = "http"
    HTTPS = "https"


class SslType(OptionEnum):
    PEM = "PEM"
    DER = "DER"


class SslVersion(OptionEnum):
    DEFAULT = "default"
    TLSV1 = "tlsv1"
    TLSV1_0 = "tlsv1.0"
    TLSV1_1 = "tlsv1.1"
    TLSV1_2 = "tlsv1.2"
    TLSV1_3 = "tlsv1.3"


class KeyBits(OptionEnum):
    BITS40 = "40"
    BITS128 = "128"


class PdfEvent(OptionEnum):
    """Viewer events a PDF script can be attached to."""

    WILL_CLOSE = "will-close"
    WILL_SAVE = "will-save"
    DID_SAVE = "did-save"
    WILL_PRINT = "will-print"
    DID_PRINT = "did-print"


class PdfProfile(OptionEnum):
    PDFA_1A = "PDF/A-1a"
    PDFA_1A_AND_PDFUA_1 = "PDF/A-1a+PDF/UA-1"
    PDFA_1B = "PDF/A-1b"
    PDFA_2A = "PDF/A-2a"
    PDFA_2A_AND_PDFUA_1 = "PDF/A-2a+PDF/UA-1"
    PDFA_2B = "PDF/A-2b"
    PDFA_3A = "PDF/A-3a"
    PDFA_3A_AND_PDFUA_1 = "PDF/A-3a+PDF/UA-1"
    PDFA_3B = "PDF/A-3b"
    PDFUA_1 = "PDF/UA-1"
    PDFX_1A_2001 = "PDF/X-1a:2001"
    PDFX_1A_2003 = "PDF/X-1a:2003"
    PDFX_3_2002 = "PDF/X-3:2002"
    PDFX_3_2003 = "PDF/X-3:2003"
    PDFX_4 = "PDF/X-4"


class RasterFormat(OptionEnum):
    AUTO = "auto"
    PNG = "png"
    JPEG = "jpeg"


class RasterBackground(OptionEnum):
    WHITE = "white"
    TRANSPARENT = "transparent"
