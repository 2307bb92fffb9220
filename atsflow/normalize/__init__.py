from .sections import HEADING_SYNONYMS, document_from_parsed, document_from_text, section_type_for_heading

__all__ = ["HEADING_SYNONYMS", "document_from_parsed", "document_from_text", "section_type_for_heading"]
