from .base import CheckModule, failed_check, method_name_for
from .content import ContentChecks
from .formatting import FormattingChecks
from .structure import StructureChecks

__all__ = [
    "CheckModule",
    "ContentChecks",
    "FormattingChecks",
    "StructureChecks",
    "failed_check",
    "method_name_for",
]
