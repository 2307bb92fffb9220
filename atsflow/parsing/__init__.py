from .models import ParsedBlock, ParsedDoc
from .parse import parse_bytes, parse_document, source_type_for

__all__ = ["ParsedBlock", "ParsedDoc", "parse_bytes", "parse_document", "source_type_for"]
